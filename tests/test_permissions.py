import pytest

from tracker.exceptions import ForbiddenError
from tracker.models.attachment import Attachment
from tracker.models.comment import Comment
from tracker.models.issue import Issue
from tracker.models.project import Project
from tracker.models.user import User
from tracker.services import permissions


@pytest.fixture
def people():
    return {
        name: User(id=name, name=name.title(), email=f"{name}@x.com", role="developer")
        for name in ("owner", "reporter", "assignee", "member", "stranger")
    }


@pytest.fixture
def project(people):
    members = [people[n] for n in ("owner", "reporter", "assignee", "member")]
    return Project(id="p1", key="DEMO", owner_id="owner", members=members)


@pytest.fixture
def issue(project):
    return Issue(id="i1", project_id=project.id, reporter_id="reporter", assignee_id="assignee")


def test_membership(project, people):
    assert permissions.is_project_member(project, people["member"])
    assert not permissions.is_project_member(project, people["stranger"])
    with pytest.raises(ForbiddenError):
        permissions.require_project_member(project, people["stranger"])


def test_owner_only(project, people):
    assert permissions.is_project_owner(project, people["owner"])
    with pytest.raises(ForbiddenError) as exc:
        permissions.require_project_owner(project, people["member"], action="invite members")
    assert "invite members" in exc.value.message


def test_issue_actor(issue, project, people):
    for name in ("owner", "reporter", "assignee"):
        assert permissions.is_issue_actor(issue, project, people[name]), name
    assert not permissions.is_issue_actor(issue, project, people["member"])


def test_assignee_cannot_delete(issue, project, people):
    assert permissions.can_delete_issue(issue, project, people["owner"])
    assert permissions.can_delete_issue(issue, project, people["reporter"])
    assert not permissions.can_delete_issue(issue, project, people["assignee"])
    with pytest.raises(ForbiddenError):
        permissions.require_issue_delete(issue, project, people["assignee"])


def test_unassigned_issue_has_no_assignee(project, people):
    unassigned = Issue(id="i2", reporter_id="reporter", assignee_id=None)
    assert not permissions.is_issue_assignee(unassigned, people["member"])
    with pytest.raises(ForbiddenError):
        permissions.require_issue_assignee(unassigned, people["reporter"])


def test_comment_actor(project, people):
    comment = Comment(id="c1", author_id="member")
    assert permissions.is_comment_actor(comment, project, people["member"])
    assert permissions.is_comment_actor(comment, project, people["owner"])
    assert not permissions.is_comment_actor(comment, project, people["reporter"])


def test_attachment_delete_uploader_or_admin(people):
    attachment = Attachment(id="a1", uploaded_by_id="member")
    assert permissions.can_delete_attachment(attachment, people["member"])
    assert not permissions.can_delete_attachment(attachment, people["stranger"])

    people["stranger"].role = "admin"
    assert permissions.can_delete_attachment(attachment, people["stranger"])
