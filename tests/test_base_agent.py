"""Tests for portalexport.agents.base module."""

import pytest

from portalexport.agents.base import (
    ConfigError,
    Credentials,
    ExportStatus,
    NoDownloadError,
    PipelineError,
    PortalAgent,
    PortalSession,
    SelectorTimeout,
    SessionState,
)


class TestSessionState:
    def test_states_in_workflow_order(self):
        assert [s.value for s in SessionState] == [
            "unauthenticated",
            "credentials_entry",
            "submitting",
            "search",
            "record_selection",
            "record_open",
            "export",
            "completion",
        ]

    def test_position_increases(self):
        positions = [s.position for s in SessionState]
        assert positions == sorted(positions)
        assert SessionState.UNAUTHENTICATED.position == 0


class TestExportStatus:
    def test_is_str_enum(self):
        assert isinstance(ExportStatus.SUCCESS, str)
        assert ExportStatus.NO_DOWNLOAD == "no_download"


class TestErrors:
    def test_pipeline_error_stores_status(self):
        err = PipelineError(ExportStatus.AUTH_FAILED, "Could not locate Login button.")

        assert err.status == ExportStatus.AUTH_FAILED
        assert str(err) == "Could not locate Login button."

    def test_default_message_is_status_value(self):
        assert str(PipelineError(ExportStatus.RECORD_NOT_FOUND)) == "record_not_found"

    def test_config_error(self):
        err = ConfigError("Set PORTAL_EMAIL")

        assert isinstance(err, PipelineError)
        assert err.status == ExportStatus.CONFIG_ERROR

    def test_selector_timeout(self):
        assert SelectorTimeout("x").status == ExportStatus.TIMEOUT

    def test_no_download_message(self):
        err = NoDownloadError()

        assert err.status == ExportStatus.NO_DOWNLOAD
        assert str(err) == "no downloadable response observed"


class TestCredentials:
    def test_password_hidden_from_repr(self):
        creds = Credentials(email="ops@example.com", password="hunter2")

        assert "hunter2" not in repr(creds)
        assert "ops@example.com" in repr(creds)


class _NoopAgent(PortalAgent):
    async def open_portal(self): ...
    async def enter_credentials(self): ...
    async def submit_login(self): ...
    async def search_account(self): ...
    async def select_target_record(self): return "200"
    async def open_record(self, record_id): ...
    async def trigger_export(self): ...
    async def complete(self, pending, record_id): ...


def _agent(run_log=None):
    session = PortalSession(page=object(), account_id="1", credentials=Credentials("a", "b"))
    return _NoopAgent(session, run_log=run_log)


class TestStateTransitions:
    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            PortalAgent(PortalSession(object(), "1", Credentials("a", "b")))

    def test_forward_transition(self):
        agent = _agent()
        agent.enter_state(SessionState.UNAUTHENTICATED)
        agent.enter_state(SessionState.SEARCH)

        assert agent.state == SessionState.SEARCH

    def test_backward_transition_rejected(self):
        agent = _agent()
        agent.enter_state(SessionState.SEARCH)

        with pytest.raises(RuntimeError, match="Illegal transition"):
            agent.enter_state(SessionState.SUBMITTING)

    def test_repeated_state_rejected(self):
        agent = _agent()
        agent.enter_state(SessionState.EXPORT)

        with pytest.raises(RuntimeError):
            agent.enter_state(SessionState.EXPORT)
