"""Unit tests for the message lifecycle service

Tests cover:
- Send / reply / forward field validation and thread assignment
- Draft save, partial update and send
- Read, trash, restore and idempotent delete
- Ownership (not-mine is indistinguishable from missing)
- Post-commit notification hooks (recipient, timing, failure isolation)
"""

import pytest
from uuid import uuid4
from sqlalchemy.orm import Session

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models.message import Message
from models.user import User
from messaging.errors import MessageNotFoundError, MessageValidationError
from messaging.service import MessageService
from users.resolver import IdentityResolver


@pytest.fixture
def recorder(push_recorder):
    return push_recorder


@pytest.fixture
def service(db_session: Session, recorder) -> MessageService:
    return MessageService(db_session, IdentityResolver(db_session), post_commit_hooks=[recorder])


class TestSend:
    """Test MessageService.send"""

    def test_send_creates_thread_root(self, service: MessageService, alice: User, bob: User):
        """Test a sent message is its own thread root"""
        message = service.send(alice.id, "bob", "Hello", "First message")

        assert message.sender_id == alice.id
        assert message.receiver_id == bob.id
        assert message.thread_id == message.id
        assert message.is_draft is False
        assert message.is_read is False
        assert message.is_trashed is False

    def test_send_resolves_receiver_by_email(self, service: MessageService, alice: User, bob: User):
        """Test receiver may be given as email"""
        message = service.send(alice.id, "Bob@Example.com", "Hello", "Hi")
        assert message.receiver_id == bob.id

    def test_send_notifies_receiver(self, service: MessageService, recorder, alice: User, bob: User):
        """Test exactly one notification to the receiver"""
        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert recorder.recipients == [bob.id]
        assert recorder.message_ids == [message.id]

    @pytest.mark.parametrize("receiver,subject,body", [
        (None, "Hello", "Hi"),
        ("bob", "", "Hi"),
        ("bob", "Hello", None),
        ("bob", "Hello", "   "),
    ])
    def test_send_requires_all_fields(
        self, service: MessageService, recorder, db_session: Session,
        alice: User, bob: User, receiver, subject, body
    ):
        """Test missing receiver, subject or body is a validation error with no side effects"""
        with pytest.raises(MessageValidationError) as exc_info:
            service.send(alice.id, receiver, subject, body)

        assert exc_info.value.message == "All fields required"
        assert db_session.query(Message).count() == 0
        assert recorder.calls == []

    def test_send_to_unknown_receiver(self, service: MessageService, recorder, db_session: Session, alice: User):
        """Test an unresolvable receiver is not found and nothing is stored"""
        with pytest.raises(MessageNotFoundError) as exc_info:
            service.send(alice.id, "nobody", "Hello", "Hi")

        assert exc_info.value.message == "Receiver not found"
        assert db_session.query(Message).count() == 0
        assert recorder.calls == []


class TestReply:
    """Test MessageService.reply"""

    def test_reply_goes_to_original_sender(self, service: MessageService, recorder, alice: User, bob: User):
        """Test reply addressing, subject prefix and thread"""
        original = service.send(alice.id, "bob", "Hello", "Hi Bob")

        reply = service.reply(bob.id, original.id, "Hi Alice")

        assert reply.sender_id == bob.id
        assert reply.receiver_id == alice.id
        assert reply.subject == "Re: Hello"
        assert reply.body == "Hi Alice"
        assert reply.thread_id == original.id
        assert recorder.recipients == [bob.id, alice.id]

    def test_reply_to_reply_stays_in_thread(self, service: MessageService, alice: User, bob: User):
        """Test nested replies keep the root thread id"""
        original = service.send(alice.id, "bob", "Hello", "Hi Bob")
        reply = service.reply(bob.id, original.id, "Hi Alice")

        second = service.reply(alice.id, reply.id, "How are you?")

        assert second.thread_id == original.id
        assert second.subject == "Re: Re: Hello"
        assert second.receiver_id == bob.id

    def test_reply_to_unthreaded_original(
        self, service: MessageService, db_session: Session, alice: User, bob: User
    ):
        """Test replying to a message without thread_id roots the thread at the original"""
        legacy = Message(sender_id=alice.id, receiver_id=bob.id, subject="Old", body="Old body")
        db_session.add(legacy)
        db_session.commit()

        reply = service.reply(bob.id, legacy.id, "Answer")

        assert reply.thread_id == legacy.id
        db_session.refresh(legacy)
        assert legacy.thread_id is None

    def test_reply_requires_body(self, service: MessageService, alice: User, bob: User):
        """Test empty reply body is rejected"""
        original = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageValidationError):
            service.reply(bob.id, original.id, "")

    def test_reply_to_missing_message(self, service: MessageService, bob: User):
        """Test replying to an unknown id is not found"""
        with pytest.raises(MessageNotFoundError) as exc_info:
            service.reply(bob.id, uuid4(), "Hi")

        assert exc_info.value.message == "Original message not found"

    def test_outsider_cannot_reply(self, service: MessageService, alice: User, bob: User, carol: User):
        """Test a non-participant sees the original as missing"""
        original = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageNotFoundError):
            service.reply(carol.id, original.id, "Intruding")

    def test_cannot_reply_to_draft(self, service: MessageService, alice: User, bob: User):
        """Test drafts cannot be replied to, even by their author"""
        draft = service.save_draft(alice.id, "bob", "Draft", "Body")

        with pytest.raises(MessageNotFoundError):
            service.reply(alice.id, draft.id, "Hmm")


class TestForward:
    """Test MessageService.forward"""

    def test_forward_copies_body_and_joins_thread(
        self, service: MessageService, recorder, alice: User, bob: User, carol: User
    ):
        """Test forward addressing, subject prefix, body copy and thread"""
        original = service.send(alice.id, "bob", "Hello", "Original text")

        forwarded = service.forward(bob.id, original.id, "carol")

        assert forwarded.sender_id == bob.id
        assert forwarded.receiver_id == carol.id
        assert forwarded.subject == "Fwd: Hello"
        assert forwarded.body == "Original text"
        assert forwarded.thread_id == original.id
        assert recorder.recipients[-1] == carol.id

    def test_forward_requires_receiver(self, service: MessageService, alice: User, bob: User):
        """Test forward without a receiver is a validation error"""
        original = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageValidationError):
            service.forward(bob.id, original.id, None)

    def test_forward_unknown_receiver(self, service: MessageService, alice: User, bob: User):
        """Test forward to an unknown user is not found"""
        original = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageNotFoundError) as exc_info:
            service.forward(bob.id, original.id, "nobody")

        assert exc_info.value.message == "Receiver not found"

    def test_forward_by_sender_is_allowed(self, service: MessageService, alice: User, bob: User, carol: User):
        """Test the original sender can forward their own sent message"""
        original = service.send(alice.id, "bob", "Hello", "Hi")

        forwarded = service.forward(alice.id, original.id, "carol")

        assert forwarded.receiver_id == carol.id


class TestDrafts:
    """Test draft save, update and send"""

    def test_save_empty_draft(self, service: MessageService, recorder, alice: User):
        """Test a draft with no fields is stored and nobody is notified"""
        draft = service.save_draft(alice.id)

        assert draft.is_draft is True
        assert draft.receiver_id is None
        assert draft.thread_id is None
        assert draft.subject == ""
        assert recorder.calls == []

    def test_save_draft_with_unknown_receiver(self, service: MessageService, alice: User):
        """Test a draft addressed to an unknown user is rejected"""
        with pytest.raises(MessageNotFoundError):
            service.save_draft(alice.id, "nobody", "S", "B")

    def test_update_draft_partial(self, service: MessageService, alice: User, bob: User):
        """Test only supplied fields change"""
        draft = service.save_draft(alice.id, None, "Subject", "Body")

        updated = service.update_draft(alice.id, draft.id, {"body": "New body", "receiver": "bob"})

        assert updated.subject == "Subject"
        assert updated.body == "New body"
        assert updated.receiver_id == bob.id
        assert updated.is_draft is True

    def test_update_draft_clears_receiver(self, service: MessageService, alice: User, bob: User):
        """Test explicit null receiver removes the recipient"""
        draft = service.save_draft(alice.id, "bob", "S", "B")

        updated = service.update_draft(alice.id, draft.id, {"receiver": None})

        assert updated.receiver_id is None

    def test_update_draft_bad_receiver_leaves_draft_unchanged(
        self, service: MessageService, db_session: Session, alice: User
    ):
        """Test a failed receiver lookup does not apply the other fields"""
        draft = service.save_draft(alice.id, None, "Subject", "Body")

        with pytest.raises(MessageNotFoundError):
            service.update_draft(alice.id, draft.id, {"receiver": "nobody", "subject": "Changed"})

        db_session.refresh(draft)
        assert draft.subject == "Subject"

    def test_update_other_users_draft(self, service: MessageService, alice: User, bob: User):
        """Test drafts are private to their author"""
        draft = service.save_draft(alice.id, "bob", "S", "B")

        with pytest.raises(MessageNotFoundError) as exc_info:
            service.update_draft(bob.id, draft.id, {"body": "hijack"})

        assert exc_info.value.message == "Draft not found"

    def test_send_draft(self, service: MessageService, recorder, alice: User, bob: User):
        """Test sending a draft makes it a thread root and notifies the receiver"""
        draft = service.save_draft(alice.id, "bob", "Subject", "Body")

        sent = service.send_draft(alice.id, draft.id)

        assert sent.id == draft.id
        assert sent.is_draft is False
        assert sent.thread_id == draft.id
        assert recorder.recipients == [bob.id]

    def test_send_draft_without_receiver(self, service: MessageService, recorder, alice: User):
        """Test a draft with no receiver cannot be sent"""
        draft = service.save_draft(alice.id, None, "Subject", "Body")

        with pytest.raises(MessageValidationError):
            service.send_draft(alice.id, draft.id)

        assert recorder.calls == []

    def test_sent_draft_cannot_be_updated_or_resent(self, service: MessageService, alice: User, bob: User):
        """Test a sent draft is no longer a draft"""
        draft = service.save_draft(alice.id, "bob", "Subject", "Body")
        service.send_draft(alice.id, draft.id)

        with pytest.raises(MessageNotFoundError):
            service.update_draft(alice.id, draft.id, {"body": "late edit"})
        with pytest.raises(MessageNotFoundError):
            service.send_draft(alice.id, draft.id)


class TestMailboxState:
    """Test read, trash, restore and delete"""

    def test_mark_read_by_receiver(self, service: MessageService, alice: User, bob: User):
        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert service.mark_read(bob.id, message.id).is_read is True

    def test_mark_read_by_sender_is_not_found(self, service: MessageService, alice: User, bob: User):
        """Test only the receiver can mark a message read"""
        message = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageNotFoundError):
            service.mark_read(alice.id, message.id)

    def test_trash_and_restore(self, service: MessageService, alice: User, bob: User):
        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert service.move_to_trash(bob.id, message.id).is_trashed is True
        assert service.restore(bob.id, message.id).is_trashed is False

    def test_restore_untrashed_message_is_not_found(self, service: MessageService, alice: User, bob: User):
        """Test restore only applies to trashed messages"""
        message = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageNotFoundError):
            service.restore(bob.id, message.id)

    def test_trash_by_outsider_is_not_found(self, service: MessageService, alice: User, bob: User, carol: User):
        message = service.send(alice.id, "bob", "Hello", "Hi")

        with pytest.raises(MessageNotFoundError):
            service.move_to_trash(carol.id, message.id)

    def test_delete_is_idempotent(self, service: MessageService, db_session: Session, alice: User, bob: User):
        """Test the second delete reports nothing removed without raising"""
        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert service.delete_message(bob.id, message.id) is True
        assert service.delete_message(bob.id, message.id) is False
        assert db_session.query(Message).filter(Message.id == message.id).first() is None

    def test_delete_by_outsider_removes_nothing(
        self, service: MessageService, db_session: Session, alice: User, bob: User, carol: User
    ):
        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert service.delete_message(carol.id, message.id) is False
        assert db_session.query(Message).filter(Message.id == message.id).first() is not None

    def test_receiver_cannot_delete_draft_addressed_to_them(
        self, service: MessageService, db_session: Session, alice: User, bob: User
    ):
        """Test drafts are invisible to their intended receiver"""
        draft = service.save_draft(alice.id, "bob", "Draft", "Body")

        assert service.delete_message(bob.id, draft.id) is False

    def test_delete_root_keeps_thread(self, service: MessageService, db_session: Session, alice: User, bob: User):
        """Test replies survive deletion of the thread root"""
        original = service.send(alice.id, "bob", "Hello", "Hi")
        reply = service.reply(bob.id, original.id, "Hey")

        service.delete_message(alice.id, original.id)

        remaining = db_session.query(Message).filter(Message.thread_id == original.id).all()
        assert [m.id for m in remaining] == [reply.id]


class TestPostCommitHooks:
    """Test hook isolation"""

    def test_failing_hook_does_not_fail_send(self, db_session: Session, recorder, alice: User, bob: User):
        """Test a broken notifier never reaches the caller and the message stays committed"""
        def broken_hook(recipient_id, message):
            raise RuntimeError("transport down")

        service = MessageService(
            db_session, IdentityResolver(db_session), post_commit_hooks=[broken_hook, recorder]
        )

        message = service.send(alice.id, "bob", "Hello", "Hi")

        assert db_session.query(Message).filter(Message.id == message.id).count() == 1
        assert recorder.recipients == [bob.id]

    def test_non_recipient_transitions_do_not_notify(self, service: MessageService, recorder, alice: User, bob: User):
        """Test read, trash, restore and delete are silent"""
        message = service.send(alice.id, "bob", "Hello", "Hi")
        recorder.calls.clear()

        service.mark_read(bob.id, message.id)
        service.move_to_trash(bob.id, message.id)
        service.restore(bob.id, message.id)
        service.delete_message(bob.id, message.id)

        assert recorder.calls == []
