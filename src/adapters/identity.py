from uuid import UUID


class StaticIdentity:
    """IdentityPort returning a fixed viewer (None for anonymous)."""

    def __init__(self, viewer_id: UUID | None = None) -> None:
        self.viewer_id = viewer_id

    def current_viewer_id(self) -> UUID | None:
        return self.viewer_id
