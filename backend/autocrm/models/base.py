from __future__ import annotations

from ..extensions import db


class StoreRecord:
    """
    Columns shared by every record held in the entity store.

    `id` is the public, prefixed opaque identifier (e.g. "client-k3j9x0a1b").
    `seq` is an internal surrogate key; collections are read back ordered by
    it so insertion order is preserved for display.

    No ForeignKey constraints are declared anywhere in the models: references
    between records are plain indexed strings and may dangle.
    """
    ID_PREFIX = ""

    seq = db.Column(db.Integer, primary_key=True, autoincrement=True)
    id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
