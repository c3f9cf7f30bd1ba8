"""Tests for envelope conversion."""

from messaginghub.protocol.envelopes import (
    Command,
    CommandMethod,
    CommandStatus,
    Message,
    Notification,
    NotificationEvent,
    Reason,
    Session,
    SessionState,
)


class TestEnvelopes:
    """Tests for envelope wire dicts."""

    def test_message_uses_from_key(self):
        message = Message(id="1", type="text/plain", content="hi", from_="bob@msging.net")
        assert message.to_dict() == {
            "id": "1",
            "from": "bob@msging.net",
            "type": "text/plain",
            "content": "hi",
        }
        assert Message.from_dict(message.to_dict()) == message

    def test_message_gets_fresh_id(self):
        assert Message(type="text/plain").id != Message(type="text/plain").id

    def test_notification_with_reason(self):
        notification = Notification(
            id="1",
            to="bob@msging.net",
            event=NotificationEvent.FAILED,
            reason=Reason(code=101, description="boom"),
        )
        data = notification.to_dict()

        assert data["event"] == "failed"
        assert data["reason"] == {"code": 101, "description": "boom"}
        assert Notification.from_dict(data).event is NotificationEvent.FAILED

    def test_unknown_notification_event_kept_as_string(self):
        assert Notification.from_dict({"event": "custom"}).event == "custom"

    def test_command_response(self):
        command = Command.from_dict(
            {"id": "c1", "method": "get", "status": "success", "resource": {"a": 1}}
        )
        assert command.status is CommandStatus.SUCCESS
        assert command.is_success
        assert command.method == CommandMethod.GET
        assert command.to_dict() == {
            "id": "c1",
            "method": "get",
            "resource": {"a": 1},
            "status": "success",
        }

    def test_failed_command_is_not_success(self):
        command = Command.from_dict({"id": "c1", "method": "set", "status": "failure"})
        assert not command.is_success
        assert "failure" in str(command)

    def test_session_from_dict(self):
        session = Session.from_dict({"id": "S1", "state": "established", "from": "postmaster@msging.net"})
        assert session.state is SessionState.ESTABLISHED
        assert session.from_ == "postmaster@msging.net"
