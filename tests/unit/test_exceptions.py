"""
Unit tests for the structured exception hierarchies and their helpers.
"""

import uuid

import pytest

from guildstore.core.exceptions import (
    ErrorSeverity,
    MalformedRecordError,
    RecordNotFoundError,
    StorageUnavailableError,
    StorageWriteError,
)
from guildstore.domain.exceptions import (
    AlreadyMemberError,
    GuildNotFoundError,
    InvalidOperationError,
    NoDefaultRankError,
    NotAMemberError,
    NotFoundError,
    get_error_severity,
    is_transient_error,
    should_alert,
)


@pytest.mark.unit
class TestDomainExceptions:
    def test_not_found_and_invalid_operation_are_distinct(self):
        assert issubclass(GuildNotFoundError, NotFoundError)
        assert issubclass(NotAMemberError, InvalidOperationError)
        assert not issubclass(NotAMemberError, NotFoundError)

    def test_error_codes(self):
        player = uuid.uuid4()
        assert NotAMemberError("Alpha", player).error_code == "NOT_A_MEMBER"
        assert NoDefaultRankError("Alpha").error_code == "NO_DEFAULT_RANK"

    def test_to_dict_is_serializable_shape(self):
        # Arrange
        player = uuid.uuid4()
        exc = AlreadyMemberError("Alpha", player, "member")

        # Act
        data = exc.to_dict()

        # Assert
        assert data["error_type"] == "AlreadyMemberError"
        assert data["message"] == exc.message
        assert data["is_retryable"] is False


@pytest.mark.unit
class TestInfrastructureExceptions:
    def test_write_error_is_retryable(self):
        exc = StorageWriteError("save", "Alpha", "/tmp/Alpha.yml", OSError("disk full"))

        assert exc.is_retryable is True
        assert exc.details["error_type"] == "OSError"
        assert exc.error_code == "STORAGE_WRITE_FAILED"

    def test_malformed_record_names_field(self):
        exc = MalformedRecordError("Alpha", "balance", "expected a number")

        assert exc.record == "Alpha"
        assert exc.field == "balance"
        assert "balance" in str(exc)


@pytest.mark.unit
class TestErrorHelpers:
    @pytest.mark.parametrize(
        "exc, transient",
        [
            (StorageWriteError("save", "Alpha"), True),
            (RecordNotFoundError("Alpha"), False),
            (GuildNotFoundError("Alpha"), False),
            (ValueError("plain"), False),
        ],
    )
    def test_is_transient_error(self, exc, transient):
        assert is_transient_error(exc) is transient

    def test_severity_and_alerting(self):
        assert get_error_severity(StorageUnavailableError("/srv/guilds")) is ErrorSeverity.CRITICAL
        assert should_alert(StorageUnavailableError("/srv/guilds")) is True
        assert should_alert(MalformedRecordError("Alpha", "leader", "missing")) is False
        assert should_alert(RuntimeError("unknown")) is True
