"""Two-step workflow state: idea generation, then script generation."""

import logging
from enum import Enum

from .credentials import CredentialStore
from .errors import ErrorKind, SessionBusyError, classify_error
from .models import Idea, ScriptSection, ScriptType
from .service import GeminiService

logger = logging.getLogger(__name__)

DEFAULT_PROTAGONIST = "경제"
INVALID_KEY_MESSAGE = "API 키가 만료되었거나 유효하지 않습니다. 다시 연결해주세요."
GENERIC_FAILURE_MESSAGE = "작업을 수행하는 도중 문제가 발생했습니다."


class Step(str, Enum):
    IDEAS = "ideas"
    SCRIPT = "script"


class ScriptSession:
    """Holds the state of one user's idea → script workflow.

    Only one idea request and one script request may be in flight at a time.
    Failures are classified, recorded on the session (``error``,
    ``quota_exceeded``) and re-raised; a rejected key is forgotten so the user
    is sent back to key entry.
    """

    def __init__(
        self,
        service: GeminiService,
        credentials: CredentialStore,
        protagonist_name: str = DEFAULT_PROTAGONIST,
        script_type: ScriptType = ScriptType.SHORTS,
    ) -> None:
        self.service = service
        self.credentials = credentials
        self.protagonist_name = protagonist_name
        self.script_type = script_type
        self.keyword = ""
        self.step = Step.IDEAS
        self.ideas: list[Idea] = []
        self.selected_idea: Idea | None = None
        self.sections: list[ScriptSection] = []
        self.loading_ideas = False
        self.loading_script = False
        self.error: str | None = None
        self.quota_exceeded = False

    @property
    def needs_key(self) -> bool:
        return not self.credentials.has_key()

    def _clear_error(self) -> None:
        self.error = None
        self.quota_exceeded = False

    def handle_error(self, exc: BaseException) -> ErrorKind:
        """Record ``exc`` on the session and update shared state."""
        kind = classify_error(exc)
        if kind is ErrorKind.INVALID_CREDENTIAL:
            self.credentials.clear()
            self.error = INVALID_KEY_MESSAGE
            return kind
        self.error = str(exc) or GENERIC_FAILURE_MESSAGE
        if kind is ErrorKind.QUOTA_EXCEEDED:
            self.quota_exceeded = True
        logger.debug("Recorded %s error: %s", kind.value, self.error)
        return kind

    async def generate_ideas(self, keyword: str | None = None) -> list[Idea]:
        if self.loading_ideas:
            msg = "Idea generation is already running."
            raise SessionBusyError(msg)
        if keyword is not None:
            self.keyword = keyword
        self.loading_ideas = True
        self._clear_error()
        try:
            self.ideas = await self.service.generate_video_ideas(self.keyword)
        except Exception as e:
            self.handle_error(e)
            self.ideas = []
            raise
        finally:
            self.loading_ideas = False
        return self.ideas

    async def select_idea(self, idea: Idea) -> list[ScriptSection]:
        if self.loading_script:
            msg = "Script generation is already running."
            raise SessionBusyError(msg)
        self.selected_idea = idea
        self.loading_script = True
        self.step = Step.SCRIPT
        self._clear_error()
        try:
            script = await self.service.generate_script(
                idea.title,
                self.protagonist_name,
                self.script_type,
            )
            self.sections = script.sections
        except Exception as e:
            self.handle_error(e)
            self.step = Step.IDEAS
            raise
        finally:
            self.loading_script = False
        return self.sections

    def reset(self) -> None:
        self.step = Step.IDEAS
        self.sections = []
        self.selected_idea = None
        self._clear_error()
