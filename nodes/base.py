"""Common shape of every node type a flow can contain."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from nodes.params import NodeParam


@dataclass
class RunOptions:
    """Per-run values handed to every node while a flow is built."""

    # Shared abort signal; setting it stops the run at the next check.
    signal: threading.Event = field(default_factory=threading.Event)
    session_id: Optional[str] = None
    chat_id: Optional[str] = None
    input: Optional[str] = None

    @property
    def workflow_id(self) -> str:
        return self.session_id or self.chat_id or "flow"

    def flow_obj(self) -> Dict[str, Any]:
        return {"session_id": self.session_id, "chat_id": self.chat_id, "input": self.input}


class BaseNode:
    """A node type: its editor metadata, declared inputs and ``init``."""

    label: ClassVar[str]
    name: ClassVar[str]
    version: ClassVar[float] = 1.0
    type: ClassVar[str]
    category: ClassVar[str]
    description: ClassVar[str] = ""
    inputs: ClassVar[List[NodeParam]] = []

    @property
    def base_classes(self) -> List[str]:
        return [self.type]

    def reference_params(self) -> List[NodeParam]:
        return [param for param in self.inputs if param.is_reference]

    def init(self, inputs: Mapping[str, Any], options: RunOptions) -> Any:
        """Build the node's runtime object from coerced, resolved inputs."""
        raise NotImplementedError
