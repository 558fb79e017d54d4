"""Node configuration variants - one config class per NodeType

Business definition:
- The shape of a node's config is decided by the node type (Form has a formId,
  API has a url and failure handling, ...)
- The editor stores configs as camelCase JSON objects; `from_dict` / `to_dict`
  convert between that wire shape and the typed variants

Design:
- Tagged union: every NodeType maps to exactly one NodeConfig subclass through
  CONFIG_TYPES; the mapping is checked for completeness at import time
- Parsing is lenient. Malformed optional values become None (or are kept raw where
  validation must report them) so that validation never crashes
- `clone()` copies the known fields explicitly; history snapshots and pasted
  nodes never share mutable state with the originals
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from approvalflow.domain.value_objects.duration import Duration, TimeoutUnit
from approvalflow.domain.value_objects.node_type import NodeType


class FailureStrategy(str, Enum):
    """What an API node does when the call fails"""

    STOP = "stop"
    RETRY = "retry"
    CONTINUE = "continue"
    RETURN_TO_CHECKPOINT = "return-to-checkpoint"


class CacheStrategy(str, Enum):
    ALWAYS_EXECUTE = "always-execute"
    CACHE_UNTIL_CHECKPOINT_RESET = "cache-until-checkpoint-reset"
    CACHE_UNTIL_WORKFLOW_END = "cache-until-workflow-end"


class ChallengeType(str, Enum):
    ACCEPTANCE = "acceptance"
    SIGNATURE = "signature"


class DeliveryMethod(str, Enum):
    NONE = "none"
    SMS = "sms"
    EMAIL = "email"
    BOTH = "both"


API_MAX_RETRIES = 2
API_MIN_TIMEOUT_MS = 5000
API_MAX_TIMEOUT_MS = 300000
MAX_CHALLENGE_RETRIES = 5

DEFAULT_CHALLENGE_TIMEOUT = Duration(value=5, unit=TimeoutUnit.MINUTES)

# Legacy-compatible keys holding the configured challenge results, in priority order
CHALLENGE_RESULT_CONFIG_KEYS: tuple[str, ...] = ("enabledResults", "results", "activeResults")


def _number(raw: Any) -> int | float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return raw


def _text(raw: Any) -> str | None:
    return raw if isinstance(raw, str) else None


def _enum(enum_cls: type[Enum], raw: Any) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def _put(payload: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        payload[key] = value


@dataclass
class NodeConfig:
    """Base class of every config variant"""

    node_type: ClassVar[NodeType]

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NodeConfig:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {}

    def clone(self) -> NodeConfig:
        return type(self)()


@dataclass
class StartConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.START


@dataclass
class EndConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.END


@dataclass
class JoinConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.JOIN


@dataclass
class FormConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.FORM

    form_id: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> FormConfig:
        return cls(form_id=_text(raw.get("formId")))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "formId", self.form_id)
        return payload

    def clone(self) -> FormConfig:
        return FormConfig(form_id=self.form_id)


@dataclass
class DecisionConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.DECISION

    condition: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DecisionConfig:
        return cls(condition=_text(raw.get("condition")))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "condition", self.condition)
        return payload

    def clone(self) -> DecisionConfig:
        return DecisionConfig(condition=self.condition)


@dataclass
class TransformConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.TRANSFORM

    code: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransformConfig:
        return cls(code=_text(raw.get("code")))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "code", self.code)
        return payload

    def clone(self) -> TransformConfig:
        return TransformConfig(code=self.code)


@dataclass
class FailureHandling:
    """API failure handling

    Attributes:
    - on_failure: strategy (None when the stored value is unknown)
    - max_retries: 0-2 (kept raw so out-of-range values can be reported)
    - retry_count: runtime counter, carried through untouched
    - cache_strategy: response caching policy
    - timeout: milliseconds, 5000-300000 recommended
    - checkpoint_id: checkpoint to return to for RETURN_TO_CHECKPOINT
    """

    on_failure: FailureStrategy | None = FailureStrategy.STOP
    max_retries: int | float | None = 0
    retry_count: int | float | None = 0
    cache_strategy: CacheStrategy | None = CacheStrategy.ALWAYS_EXECUTE
    timeout: int | float | None = 30000
    checkpoint_id: str | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> FailureHandling | None:
        if not isinstance(raw, dict):
            return None
        return cls(
            on_failure=_enum(FailureStrategy, raw.get("onFailure")),
            max_retries=_number(raw.get("maxRetries")),
            retry_count=_number(raw.get("retryCount")),
            cache_strategy=_enum(CacheStrategy, raw.get("cacheStrategy")),
            timeout=_number(raw.get("timeout")),
            checkpoint_id=_text(raw.get("checkpointId")) or None,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "onFailure", self.on_failure.value if self.on_failure else None)
        _put(payload, "maxRetries", self.max_retries)
        _put(payload, "retryCount", self.retry_count)
        _put(
            payload,
            "cacheStrategy",
            self.cache_strategy.value if self.cache_strategy else None,
        )
        _put(payload, "timeout", self.timeout)
        _put(payload, "checkpointId", self.checkpoint_id)
        return payload

    def clone(self) -> FailureHandling:
        return FailureHandling(
            on_failure=self.on_failure,
            max_retries=self.max_retries,
            retry_count=self.retry_count,
            cache_strategy=self.cache_strategy,
            timeout=self.timeout,
            checkpoint_id=self.checkpoint_id,
        )


@dataclass
class ApiConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.API

    url: str | None = None
    method: str = "GET"
    failure_handling: FailureHandling | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ApiConfig:
        return cls(
            url=_text(raw.get("url")),
            method=_text(raw.get("method")) or "GET",
            failure_handling=FailureHandling.from_dict(raw.get("failureHandling")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"method": self.method}
        _put(payload, "url", self.url)
        if self.failure_handling is not None:
            payload["failureHandling"] = self.failure_handling.to_dict()
        return payload

    def clone(self) -> ApiConfig:
        return ApiConfig(
            url=self.url,
            method=self.method,
            failure_handling=self.failure_handling.clone() if self.failure_handling else None,
        )


@dataclass
class MessageConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.MESSAGE

    channel: str | None = None
    template: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> MessageConfig:
        return cls(channel=_text(raw.get("channel")), template=_text(raw.get("template")))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "channel", self.channel)
        _put(payload, "template", self.template)
        return payload

    def clone(self) -> MessageConfig:
        return MessageConfig(channel=self.channel, template=self.template)


@dataclass
class ChallengeRetries:
    """Challenge retry settings

    Values are kept as stored; validation reports a max_retries that is not an
    integer in [1, MAX_CHALLENGE_RETRIES] and blank or missing roles.
    """

    max_retries: Any = 1
    roles: list[Any] | None = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> ChallengeRetries | None:
        if not isinstance(raw, dict):
            return None
        roles = raw.get("roles")
        return cls(
            max_retries=raw.get("maxRetries"),
            roles=list(roles) if isinstance(roles, list) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"maxRetries": self.max_retries}
        _put(payload, "roles", list(self.roles) if self.roles is not None else None)
        return payload

    def clone(self) -> ChallengeRetries:
        return ChallengeRetries(
            max_retries=self.max_retries,
            roles=list(self.roles) if self.roles is not None else None,
        )


@dataclass
class ChallengeConfig(NodeConfig):
    """Challenge config

    `result_lists` keeps whichever of the legacy result keys
    (enabledResults / results / activeResults) the stored config carried.
    """

    node_type: ClassVar[NodeType] = NodeType.CHALLENGE

    challenge_type: str | None = ChallengeType.ACCEPTANCE.value
    challenge_timeout: Duration | None = DEFAULT_CHALLENGE_TIMEOUT
    delivery_method: str | None = DeliveryMethod.NONE.value
    retries: ChallengeRetries | None = None
    result_lists: dict[str, list[Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ChallengeConfig:
        return cls(
            challenge_type=_text(raw.get("challengeType")) or None,
            challenge_timeout=Duration.from_dict(raw.get("challengeTimeout")),
            delivery_method=_text(raw.get("deliveryMethod")) or None,
            retries=ChallengeRetries.from_dict(raw.get("retries")),
            result_lists={
                key: list(raw[key])
                for key in CHALLENGE_RESULT_CONFIG_KEYS
                if isinstance(raw.get(key), list)
            },
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "challengeType", self.challenge_type)
        if self.challenge_timeout is not None:
            payload["challengeTimeout"] = self.challenge_timeout.to_dict()
        _put(payload, "deliveryMethod", self.delivery_method)
        if self.retries is not None:
            payload["retries"] = self.retries.to_dict()
        for key, values in self.result_lists.items():
            payload[key] = list(values)
        return payload

    def clone(self) -> ChallengeConfig:
        return ChallengeConfig(
            challenge_type=self.challenge_type,
            challenge_timeout=self.challenge_timeout,
            delivery_method=self.delivery_method,
            retries=self.retries.clone() if self.retries else None,
            result_lists={key: list(values) for key, values in self.result_lists.items()},
        )


@dataclass
class RejectConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.REJECT

    allow_retry: bool = False
    max_retries: int | float | None = None
    retry_count: int | float | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RejectConfig:
        return cls(
            allow_retry=raw.get("allowRetry") is True,
            max_retries=_number(raw.get("maxRetries")),
            retry_count=_number(raw.get("retryCount")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"allowRetry": self.allow_retry}
        _put(payload, "maxRetries", self.max_retries)
        _put(payload, "retryCount", self.retry_count)
        return payload

    def clone(self) -> RejectConfig:
        return RejectConfig(
            allow_retry=self.allow_retry,
            max_retries=self.max_retries,
            retry_count=self.retry_count,
        )


@dataclass(frozen=True)
class FlagChangeEntry:
    flag_id: str
    option_id: str


@dataclass
class FlagChangeConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.FLAG_CHANGE

    flag_changes: list[FlagChangeEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> FlagChangeConfig:
        entries = raw.get("flagChanges")
        if not isinstance(entries, list):
            return cls()
        return cls(
            flag_changes=[
                FlagChangeEntry(flag_id=entry["flagId"], option_id=entry["optionId"])
                for entry in entries
                if isinstance(entry, dict)
                and isinstance(entry.get("flagId"), str)
                and isinstance(entry.get("optionId"), str)
            ]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "flagChanges": [
                {"flagId": entry.flag_id, "optionId": entry.option_id}
                for entry in self.flag_changes
            ]
        }

    def clone(self) -> FlagChangeConfig:
        return FlagChangeConfig(flag_changes=list(self.flag_changes))


@dataclass
class CheckpointConfig(NodeConfig):
    node_type: ClassVar[NodeType] = NodeType.CHECKPOINT

    checkpoint_name: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CheckpointConfig:
        return cls(
            checkpoint_name=_text(raw.get("checkpointName")),
            notes=_text(raw.get("notes")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _put(payload, "checkpointName", self.checkpoint_name)
        _put(payload, "notes", self.notes)
        return payload

    def clone(self) -> CheckpointConfig:
        return CheckpointConfig(checkpoint_name=self.checkpoint_name, notes=self.notes)


CONFIG_TYPES: dict[NodeType, type[NodeConfig]] = {
    config_cls.node_type: config_cls
    for config_cls in (
        StartConfig,
        EndConfig,
        JoinConfig,
        FormConfig,
        DecisionConfig,
        TransformConfig,
        ApiConfig,
        MessageConfig,
        ChallengeConfig,
        RejectConfig,
        FlagChangeConfig,
        CheckpointConfig,
    )
}

_missing = set(NodeType) - set(CONFIG_TYPES)
if _missing:  # pragma: no cover - guards against adding a NodeType without a variant
    raise RuntimeError(f"NodeConfig variant missing for: {sorted(t.value for t in _missing)}")


def parse_node_config(node_type: NodeType, raw: Any) -> NodeConfig:
    """Build the config variant for `node_type` from a stored dict"""
    return CONFIG_TYPES[node_type].from_dict(raw if isinstance(raw, dict) else {})


def default_node_config(node_type: NodeType) -> NodeConfig:
    return CONFIG_TYPES[node_type]()
