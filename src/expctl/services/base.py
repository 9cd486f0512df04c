"""BaseService — foundation for all expctl services.

Every service receives a :class:`Workspace` at construction time and owns
its transaction boundaries via ``self._workspace.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from expctl.infrastructure.workspace import Workspace


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class TagService(BaseService):
            def create_tag(self, name: str) -> ServiceResult:
                with self._workspace.transaction() as txn:
                    ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace
