"""
Permission predicates.

Every function here is pure: it looks only at ids already loaded on the
objects it is given. The ``require_*`` helpers turn a failed predicate into a
ForbiddenError naming the relationship that was missing.
"""
from tracker.exceptions import ForbiddenError


def is_project_owner(project, user) -> bool:
    return project.owner_id == user.id


def is_project_member(project, user) -> bool:
    return project.has_member(user.id)


def is_issue_reporter(issue, user) -> bool:
    return issue.reporter_id == user.id


def is_issue_assignee(issue, user) -> bool:
    return issue.assignee_id is not None and issue.assignee_id == user.id


def is_issue_actor(issue, project, user) -> bool:
    return (
        is_project_owner(project, user)
        or is_issue_reporter(issue, user)
        or is_issue_assignee(issue, user)
    )


def can_delete_issue(issue, project, user) -> bool:
    # the assignee alone may not delete
    return is_project_owner(project, user) or is_issue_reporter(issue, user)


def is_comment_actor(comment, project, user) -> bool:
    return is_project_owner(project, user) or comment.author_id == user.id


def has_role(user, *roles: str) -> bool:
    return user.role in roles


def can_delete_attachment(attachment, user) -> bool:
    return attachment.uploaded_by_id == user.id or has_role(user, "admin")


def require_project_owner(project, user, action: str = "perform this action"):
    if not is_project_owner(project, user):
        raise ForbiddenError(f"Access denied - Only project owner can {action}")


def require_project_member(project, user):
    if not is_project_member(project, user):
        raise ForbiddenError("Access denied - Not a project member")


def require_issue_actor(issue, project, user):
    if not is_issue_actor(issue, project, user):
        raise ForbiddenError(
            "Access denied - Only project owner, reporter, or assignee can modify this issue"
        )


def require_issue_delete(issue, project, user):
    if not can_delete_issue(issue, project, user):
        raise ForbiddenError(
            "Access denied - Only project owner or issue reporter can delete this issue"
        )


def require_issue_assignee(issue, user):
    if not is_issue_assignee(issue, user):
        raise ForbiddenError("Access denied - Only the assignee can update the status")


def require_comment_actor(comment, project, user):
    if not is_comment_actor(comment, project, user):
        raise ForbiddenError(
            "Access denied - Only project owner or comment author can modify this comment"
        )


def require_attachment_delete(attachment, user):
    if not can_delete_attachment(attachment, user):
        raise ForbiddenError("Not authorized to delete this attachment")
