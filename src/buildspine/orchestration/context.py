"""Build Context — the explicit value threaded into every task invocation.

Task bodies receive a ``BuildContext`` instead of reading process state:
policy flags come from ``settings``, file locations from ``layout``,
external tools from ``tools``, and long-lived services are started through
``services`` so the runner can stop them when the process exits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from buildspine.core.settings import BuildSettings
from buildspine.services.base import ServiceGroup

if TYPE_CHECKING:
    from buildspine.adapters.protocols import ToolSet
    from buildspine.project import ProjectLayout


@dataclass
class BuildContext:
    """
    Everything a task body may use.

    Attributes:
        settings: Policy flags and paths for this process
        layout: Library layout (entry points, file sets, artifact paths)
        tools: External tool adapters
        services: Background services started during the run
    """

    settings: BuildSettings
    layout: ProjectLayout | None = None
    tools: ToolSet | None = None
    services: ServiceGroup = field(default_factory=ServiceGroup)

    @property
    def continue_on_error(self) -> bool:
        return self.settings.continue_on_error

    def require_layout(self) -> ProjectLayout:
        if self.layout is None:
            raise RuntimeError("BuildContext has no project layout")
        return self.layout

    def require_tools(self) -> ToolSet:
        if self.tools is None:
            raise RuntimeError("BuildContext has no tool set")
        return self.tools
