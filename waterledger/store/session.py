"""
Session Manager

The current business is held by an explicit SessionManager object that is
passed to whatever needs it, never looked up globally.

Lifecycle:
    anonymous --login()--> authenticated --logout()--> anonymous

Logging in persists the identity under the session key and loads that
business's collections. Logging out removes the identity and drops the
in-memory collections; stored business data is kept.
"""

from typing import Optional

from pydantic import ValidationError

from waterledger.config import get_settings
from waterledger.diagnostics import DiagnosticLogger
from waterledger.models.records import Collections
from waterledger.models.session import BusinessSession, derive_data_key
from waterledger.services.storage import KeyValueStorageInterface, StorageError
from waterledger.store.record_store import RecordStore
from waterledger.validation import RecordValidationError, RecordValidator


class NotAuthenticatedError(RuntimeError):
    """A business action was attempted with no business logged in."""
    pass


class SessionManager:
    """Tracks who is logged in and their loaded collections."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        record_store: Optional[RecordStore] = None,
        diagnostics: Optional[DiagnosticLogger] = None,
        session_key: Optional[str] = None,
        data_key_prefix: Optional[str] = None,
    ):
        settings = get_settings().storage
        self._storage = storage
        self._diagnostics = diagnostics or DiagnosticLogger()
        self._record_store = record_store or RecordStore(storage, self._diagnostics)
        self._validator = RecordValidator()
        self._session_key = session_key or settings.session_key
        self._data_key_prefix = data_key_prefix or settings.data_key_prefix

        self._session: Optional[BusinessSession] = None
        self._collections = Collections.empty()

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    @property
    def session(self) -> Optional[BusinessSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def collections(self) -> Collections:
        return self._collections

    def replace_collections(self, collections: Collections) -> None:
        """Swap in a newly saved snapshot for the current business."""
        self.require()
        self._collections = collections

    def require(self) -> BusinessSession:
        """The current session, or NotAuthenticatedError."""
        if self._session is None:
            raise NotAuthenticatedError("No business is logged in")
        return self._session

    def login(self, business_name: str, phone: str = "") -> BusinessSession:
        """
        Authenticate as a business and load its collections.

        Raises:
            RecordValidationError: If the business name is blank
        """
        result = self._validator.validate_login(business_name, phone)
        if result.has_errors:
            self._diagnostics.log_validation_failed(
                "session",
                [issue.model_dump() for issue in result.issues],
            )
            raise RecordValidationError(result)

        session = BusinessSession(
            business_name=business_name,
            phone=phone or "",
            data_key=derive_data_key(business_name, self._data_key_prefix),
        )

        try:
            self._storage.set(self._session_key, session.model_dump_json(by_alias=True))
        except StorageError as e:
            # The session still works in memory; it just won't survive a restart.
            self._diagnostics.log_save_failed(self._session_key, str(e))

        self._activate(session)
        return session

    def restore(self) -> Optional[BusinessSession]:
        """
        Resume the persisted session, if any.

        An unreadable session entry leaves the manager anonymous.
        """
        try:
            raw = self._storage.get(self._session_key)
        except StorageError as e:
            self._diagnostics.log_session_restore_failed(str(e))
            return None

        if raw is None:
            return None

        try:
            session = BusinessSession.model_validate_json(raw)
        except ValidationError as e:
            self._diagnostics.log_session_restore_failed(str(e))
            return None

        self._activate(session)
        return session

    def logout(self) -> None:
        """Forget the identity and the in-memory collections."""
        if self._session is None:
            return
        data_key = self._session.data_key

        try:
            self._storage.remove(self._session_key)
        except StorageError as e:
            self._diagnostics.log_save_failed(self._session_key, str(e))

        self._session = None
        self._collections = Collections.empty()
        self._diagnostics.log_session_ended(data_key)

    def reload(self) -> Collections:
        """Re-read the current business's collections from storage."""
        session = self.require()
        self._collections = self._record_store.load(session.data_key)
        return self._collections

    def _activate(self, session: BusinessSession) -> None:
        self._session = session
        self._collections = self._record_store.load(session.data_key)
        self._diagnostics.log_session_started(session.data_key, session.business_name)
