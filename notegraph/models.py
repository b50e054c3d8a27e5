"""Data models for node records produced by the file scanner/parser.

A node is either a whole file or a headline carrying an ID property. The
parser that builds these records lives outside this package; the graph store
only relies on the fields below.
"""

from pathlib import PurePath

from pydantic import BaseModel, Field, model_validator

from notegraph.db.snapshot import register_model


@register_model
class Position(BaseModel):
    """Zero-based location of a link inside its file."""

    row: int = Field(ge=0)
    column: int = Field(ge=0)


@register_model
class NodeRecord(BaseModel):
    """A parsed note node.

    Attributes:
        id: Unique node id (the ID property)
        file: Path of the file containing the node
        mtime: Last modification time of the file (nanoseconds)
        title: Node title, defaulting to the file name without .org
        aliases: Alternative titles
        tags: Tags tied to the node
        level: Heading level (0 means file-level node)
        linked: Ids of referenced nodes mapped to the positions of each link
    """

    id: str = Field(min_length=1)
    file: str
    mtime: int = 0
    title: str = ""
    aliases: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    level: int = Field(default=0, ge=0)
    linked: dict[str, list[Position]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _default_title(self) -> "NodeRecord":
        if not self.title:
            name = PurePath(self.file).name
            if name.endswith(".org"):
                name = name[: -len(".org")]
            self.title = name
        return self

    def link_targets(self, count_occurrences: bool = True) -> list[str]:
        """Target ids to declare as edges from this node.

        Args:
            count_occurrences: Repeat a target once per link position so edge
                multiplicity equals the number of citations. A target with no
                recorded positions still counts once.

        Returns:
            List of target ids, possibly with repeats
        """
        if not count_occurrences:
            return list(self.linked)

        targets: list[str] = []
        for target_id, positions in self.linked.items():
            targets.extend([target_id] * max(1, len(positions)))
        return targets
