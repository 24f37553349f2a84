"""Exceptions raised by the service layer and rendered by the API."""


class TabmarkError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(TabmarkError):
    status_code = 404


class TabNotFoundError(NotFoundError):
    def __init__(self, tab_id: str) -> None:
        self.tab_id = tab_id
        super().__init__(f"Tab with ID {tab_id} not found")


class GroupNotFoundError(NotFoundError):
    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Group with ID {group_id} not found")


class BookmarkNotFoundError(NotFoundError):
    def __init__(self, bookmark_id: str) -> None:
        self.bookmark_id = bookmark_id
        super().__init__(f"Bookmark with ID {bookmark_id} not found")


class MembershipNotFoundError(NotFoundError):
    """Raised when a bookmark is not a member of the given group."""

    def __init__(self, group_id: str, bookmark_id: str) -> None:
        self.group_id = group_id
        self.bookmark_id = bookmark_id
        super().__init__(f"Bookmark with ID {bookmark_id} is not in group {group_id}")


class ConflictError(TabmarkError):
    status_code = 409


class TabNameConflictError(ConflictError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Tab with name "{name}" already exists')


class ValidationError(TabmarkError):
    status_code = 400
