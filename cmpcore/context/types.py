from enum import Enum


class ContextReason(Enum):
    """Why a context snapshot was captured."""

    AUTO = "auto"                   # automatic, on text change
    MANUAL = "manual"               # explicit completion request
    TRIGGER_ONLY = "trigger_only"   # only trigger characters may start a fetch
    NONE = "none"                   # bookkeeping capture


class TriggerEvent(Enum):
    """Host events that may start a completion cycle."""

    INSERT_ENTER = "InsertEnter"
    TEXT_CHANGED = "TextChanged"


class ConfirmBehavior(Enum):
    """Which range a confirmed item overwrites."""

    INSERT = "insert"    # text up to the cursor
    REPLACE = "replace"  # text up to the end of the word under the cursor


class SelectBehavior(Enum):
    INSERT = "insert"
    SELECT = "select"


class SourceStatus(Enum):
    """Fetch lifecycle of a registered source."""

    WAITING = "waiting"
    FETCHING = "fetching"
    COMPLETED = "completed"
    ERRORED = "errored"
