from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """
    The actions an element supports. Resolved once when the element is
    created and consulted everywhere else without further branching.
    """

    edit: bool = True
    move: bool = True
    resize: bool = True
    delete: bool = True

    @classmethod
    def resolve(
        cls,
        requested: Optional[Union[Capabilities, Mapping[str, bool]]] = None,
        authoring: bool = True,
        user_can_edit: bool = True,
    ) -> Capabilities:
        """
        Combines the capabilities requested for a card with the host mode.

        Args:
            requested: Capabilities or a sparse mapping of flags. Missing
                flags default to True.
            authoring: True while the board is being authored. In playback
                the edit capability additionally needs user_can_edit.
            user_can_edit: Whether players may edit the hosted content.
        """
        if requested is None:
            flags = {}
        elif isinstance(requested, Capabilities):
            flags = {
                "edit": requested.edit,
                "move": requested.move,
                "resize": requested.resize,
                "delete": requested.delete,
            }
        else:
            flags = dict(requested)

        unknown = set(flags) - {"edit", "move", "resize", "delete"}
        if unknown:
            raise ValueError(f"Unknown capabilities: {sorted(unknown)}")

        edit = bool(flags.get("edit", True))
        if not authoring and not user_can_edit:
            edit = False

        resolved = cls(
            edit=edit,
            move=bool(flags.get("move", True)),
            resize=bool(flags.get("resize", True)),
            delete=bool(flags.get("delete", True)),
        )
        logger.debug(f"Resolved capabilities {resolved}")
        return resolved
