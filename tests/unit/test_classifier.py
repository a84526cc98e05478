"""Unit tests for thread classification."""

from __future__ import annotations

import pytest

from mailbox_activity.activity.classifier import (
    RTR_DISPLAY_LABEL,
    ThreadClassifier,
    is_attachment_of_interest,
    is_rtr_subject,
    select_representatives,
)
from mailbox_activity.activity.reply_policy import ConversationPolicy
from mailbox_activity.models import RawMessage, RawThread


def msg(
    message_id: str,
    ts: int,
    *,
    sent: bool = False,
    subject: str | None = "Hello",
    sender: str = '"Jane Recruiter" <jane@agency.example>',
    to: str = '"Bob Client" <bob@client.example>',
    attachments: list[str] | None = None,
    labels: set[str] | None = None,
    snippet: str = "",
) -> RawMessage:
    headers = {"from": sender, "to": to}
    if subject is not None:
        headers["subject"] = subject
    base_labels = {"SENT"} if sent else {"INBOX"}
    return RawMessage(
        id=message_id,
        thread_id="t1",
        internal_timestamp=ts,
        labels=frozenset(base_labels | (labels or set())),
        headers=headers,
        snippet=snippet or f"snippet {message_id}",
        attachment_filenames=attachments or [],
    )


def thread(*messages: RawMessage, thread_id: str = "t1") -> RawThread:
    return RawThread(id=thread_id, messages=list(messages))


@pytest.fixture
def classifier() -> ThreadClassifier:
    return ThreadClassifier()


class TestRepresentatives:
    """Test suite for representative message selection."""

    def test_primary_is_first_inbound_message(self) -> None:
        messages = [msg("m1", 1, sent=True), msg("m2", 2), msg("m3", 3, sent=True)]

        primary, latest = select_representatives(messages)

        assert primary.id == "m2"
        assert latest.id == "m3"

    def test_primary_falls_back_to_first_when_all_sent(self) -> None:
        messages = [msg("m1", 1, sent=True), msg("m2", 2, sent=True)]

        primary, _ = select_representatives(messages)

        assert primary.id == "m1"


class TestClassify:
    """Test suite for ThreadClassifier.classify."""

    def test_empty_thread_returns_none(self, classifier: ThreadClassifier) -> None:
        assert classifier.classify(RawThread(id="t1", messages=[])) is None

    def test_sort_epoch_comes_from_latest_message_regardless_of_order(
        self, classifier: ThreadClassifier
    ) -> None:
        result = classifier.classify(
            thread(msg("m3", 3000, snippet="latest"), msg("m1", 1000), msg("m2", 2000))
        )

        assert result is not None
        assert result.sort_epoch == 3000
        assert result.summary == "latest"
        assert result.display_timestamp == "1970-01-01T00:00:03.000Z"

    def test_counterparty_from_primary_inbound_message(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(
            thread(msg("m1", 1, sender='"Jane Recruiter" <jane@agency.example>'), msg("m2", 2, sent=True))
        )

        assert result is not None
        assert result.counterparty_name == "Jane Recruiter"
        assert result.counterparty_address == "jane@agency.example"

    def test_counterparty_is_recipient_when_owner_started_thread(
        self, classifier: ThreadClassifier
    ) -> None:
        result = classifier.classify(thread(msg("m1", 1, sent=True, to="bob@client.example")))

        assert result is not None
        assert result.counterparty_name == "bob@client.example"
        assert result.counterparty_address == "bob@client.example"

    def test_missing_subject_uses_placeholder(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1, subject=None)))

        assert result is not None
        assert result.subject_original == "(No Subject)"

    def test_sent_and_inbox_flags_are_independent(self, classifier: ThreadClassifier) -> None:
        inbound_only = classifier.classify(thread(msg("m1", 1)))
        sent_only = classifier.classify(thread(msg("m1", 1, sent=True)))

        assert inbound_only is not None and sent_only is not None
        assert (inbound_only.flags.is_inbox, inbound_only.flags.is_sent) == (True, False)
        assert (sent_only.flags.is_inbox, sent_only.flags.is_sent) == (False, True)


class TestReplyDetection:
    """Reply flag under the canonical last-reply policy and the conversation policy."""

    def test_inbound_then_sent_is_replied(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1), msg("m2", 2, sent=True)))

        assert result is not None
        assert result.flags.is_replied is True

    def test_single_inbound_is_not_replied(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1)))

        assert result is not None
        assert result.flags.is_replied is False

    def test_inbound_after_reply_is_not_replied(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(
            thread(msg("m1", 1), msg("m2", 2, sent=True), msg("m3", 3))
        )

        assert result is not None
        assert result.flags.is_replied is False

    def test_conversation_policy_counts_any_two_way_exchange(self) -> None:
        classifier = ThreadClassifier(reply_policy=ConversationPolicy())

        result = classifier.classify(
            thread(msg("m1", 1), msg("m2", 2, sent=True), msg("m3", 3))
        )

        assert result is not None
        assert result.flags.is_replied is True


class TestAttachments:
    """Attachment-of-interest detection."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("John_Resume.pdf", True),
            ("NonResume.docx", False),
            ("CV - Jane.docx", True),
            ("candidate-profile.pdf", True),
            ("invoice.pdf", False),
        ],
    )
    def test_is_attachment_of_interest(self, filename: str, expected: bool) -> None:
        assert is_attachment_of_interest(filename) is expected

    def test_non_matching_attachment_is_ignored(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1, attachments=["NonResume.docx"])))

        assert result is not None
        assert result.flags.has_attachment_of_interest is False
        assert result.attachment_filenames == []

    def test_filenames_deduplicated_across_messages(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(
            thread(
                msg("m1", 1, attachments=["John_Resume.pdf"]),
                msg("m2", 2, sent=True, attachments=["John_Resume.pdf", "logo.png"]),
            )
        )

        assert result is not None
        assert result.flags.has_attachment_of_interest is True
        assert result.attachment_filenames == ["John_Resume.pdf"]


class TestSpecialCategory:
    """Right-to-represent (RTR) detection."""

    def test_subject_keywords(self) -> None:
        assert is_rtr_subject("Right To Represent - Java Developer")
        assert is_rtr_subject("RTR: Jane Doe for Acme")
        assert is_rtr_subject("Two RTRs pending")
        assert is_rtr_subject("rtr_request Jane Doe")
        assert is_rtr_subject("Signed RTR.")
        assert not is_rtr_subject("Portrait session")
        assert not is_rtr_subject("Right to representation of data")
        assert not is_rtr_subject("Quartrly numbers")
        assert not is_rtr_subject(None)

    def test_rtr_subject_on_single_message(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1, subject="Right To Represent - Java Dev")))

        assert result is not None
        assert result.flags.is_special_category is True
        assert result.subject_display == RTR_DISPLAY_LABEL
        assert result.subject_original == "Right To Represent - Java Dev"

    def test_rtr_on_any_message_flags_thread(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(
            thread(msg("m1", 1, subject="Java Dev"), msg("m2", 2, sent=True, subject="Re: RTR attached"))
        )

        assert result is not None
        assert result.flags.is_special_category is True

    def test_label_of_interest_flags_thread(self) -> None:
        classifier = ThreadClassifier(special_label_ids={"Label_7"})

        result = classifier.classify(thread(msg("m1", 1, subject="Java Dev", labels={"Label_7"})))

        assert result is not None
        assert result.flags.is_special_category is True


class TestSubjectDisplay:
    """Display subject normalization."""

    def test_role_label_before_separator(self, classifier: ThreadClassifier) -> None:
        result = classifier.classify(thread(msg("m1", 1, subject="Re: Data Analyst - NYC")))

        assert result is not None
        assert result.subject_display == "Data Analyst"

    def test_long_leading_segment_uses_full_clean_subject(self, classifier: ThreadClassifier) -> None:
        subject = "Fw: " + "x" * 60 + " | remote"

        result = classifier.classify(thread(msg("m1", 1, subject=subject)))

        assert result is not None
        assert result.subject_display == "x" * 60 + " | remote"


def test_end_to_end_forwarded_role_thread(classifier: ThreadClassifier) -> None:
    result = classifier.classify(
        thread(
            msg("m1", 1000, subject="Fwd: Senior Engineer | Remote"),
            msg("m2", 2000, subject="Re: Senior Engineer | Remote"),
            msg("m3", 3000, sent=True, subject="Re: Senior Engineer | Remote"),
        )
    )

    assert result is not None
    assert result.subject_display == "Senior Engineer"
    assert result.flags.is_replied is True
    assert result.flags.is_special_category is False


def test_classification_is_deterministic(classifier: ThreadClassifier) -> None:
    raw = thread(
        msg("m1", 5, attachments=["a_cv.pdf", "b_resume.pdf"]),
        msg("m2", 5, sent=True, attachments=["b_resume.pdf"]),
    )

    first = classifier.classify(raw)
    second = classifier.classify(raw)

    assert first is not None and second is not None
    assert first.model_dump_json() == second.model_dump_json()
