"""NodeType enum and related node-level enums

Business definition:
- NodeType is the closed set of node kinds an approval workflow can contain
- Each type decides its config shape, its connection limits and the rules applied
  to it during validation

Design:
- str enums so values serialize directly to JSON and compare equal to plain strings
- Values match the tags stored by the editor ("Start", "FlagChange", ...)
"""

from enum import Enum


class NodeType(str, Enum):
    """Node types

    - START: single entry point of the workflow
    - REJECT: rejection terminal, optionally retrying back to a checkpoint
    - END: successful terminal
    - FORM: a form filled by one of the node roles
    - DECISION: boolean condition with a positive (top) and negative (bottom) output
    - TRANSFORM: data transformation code
    - API: external API call with failure handling
    - MESSAGE: notification sent over a channel
    - CHALLENGE: acceptance/signature challenge with accepted/rejected outputs
    - CHECKPOINT: resumption point (normal or safe)
    - JOIN: merges several branches into one
    - FLAG_CHANGE: sets workflow flags to given options
    """

    START = "Start"
    REJECT = "Reject"
    END = "End"
    FORM = "Form"
    DECISION = "Decision"
    TRANSFORM = "Transform"
    API = "API"
    MESSAGE = "Message"
    CHALLENGE = "Challenge"
    CHECKPOINT = "Checkpoint"
    JOIN = "Join"
    FLAG_CHANGE = "FlagChange"


class CheckpointType(str, Enum):
    """Checkpoint flavour (only meaningful on Checkpoint nodes)"""

    NORMAL = "normal"
    SAFE = "safe"


class Role(str, Enum):
    """Roles that can be assigned to nodes"""

    SOLICITANTE = "Solicitante"
    VENDEDOR = "Vendedor"
    DEALER = "Dealer"
    AGENTE_DE_CREDITO = "Agente de Crédito"
    COBRANZA = "Cobranza"
    ADMIN = "Admin"


class Port(str, Enum):
    """Output ports of dual-output nodes (Decision, Challenge)"""

    TOP = "top"
    BOTTOM = "bottom"


class EdgeKind(str, Enum):
    """Semantic edge kind

    RETRY edges are informational: they show where a Reject (or a failing API)
    returns control. They are decoupled from the display label.
    """

    NORMAL = "normal"
    RETRY = "retry"


# Node types that support a staleTimeout
STALE_SUPPORTED_NODE_TYPES: frozenset[NodeType] = frozenset(
    {
        NodeType.FORM,
        NodeType.DECISION,
        NodeType.TRANSFORM,
        NodeType.API,
        NodeType.MESSAGE,
        NodeType.CHALLENGE,
    }
)

# Nodes with two named output ports (top/bottom)
DUAL_OUTPUT_NODE_TYPES: frozenset[NodeType] = frozenset({NodeType.DECISION, NodeType.CHALLENGE})

# Nodes that end a flow by type
TERMINAL_NODE_TYPES: frozenset[NodeType] = frozenset({NodeType.END, NodeType.REJECT})

# Nodes that must have at least one role assigned
ROLE_REQUIRED_NODE_TYPES: frozenset[NodeType] = frozenset({NodeType.FORM, NodeType.CHALLENGE})
