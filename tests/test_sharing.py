import pytest
from fastapi import HTTPException

from filevault.access import has_access
from filevault.sharing import create_grant, revoke_grant, list_grants, list_shared_with
from filevault.stats import get_stats

from tests.conftest import make_file


def test_grant_by_email_gives_access_and_counts(repo, session, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    f = make_file(repo, alice)

    share = create_grant(repo, f.id, alice.id, "bob@example.com", "view")

    assert share.user_id == bob.id
    assert share.permission == "view"
    assert has_access(repo, f.id, bob.id)
    assert get_stats(session, alice.id).files_shared == 1


def test_grant_by_id_and_by_email_converge(repo, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    f = make_file(repo, alice)

    by_id = create_grant(repo, f.id, alice.id, bob.id, "download")
    by_email = create_grant(repo, f.id, alice.id, "BOB@example.com", "download")

    assert by_id.id == by_email.id


def test_repeat_grant_updates_permission_without_duplicating(repo, session, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    f = make_file(repo, alice)

    create_grant(repo, f.id, alice.id, bob.id, "view")
    share = create_grant(repo, f.id, alice.id, bob.id, "edit")

    assert share.permission == "edit"
    assert len(list_grants(repo, f.id, alice.id)) == 1
    assert get_stats(session, alice.id).files_shared == 1


def test_only_owner_can_grant(repo, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    f = make_file(repo, alice)
    create_grant(repo, f.id, alice.id, bob.id, "edit")

    with pytest.raises(HTTPException) as exc:
        create_grant(repo, f.id, bob.id, carol.id, "view")
    assert exc.value.status_code == 403
    assert not has_access(repo, f.id, carol.id)


@pytest.mark.parametrize("recipient", ["nobody@example.com", 4242])
def test_unknown_recipient_is_not_found(repo, make_user, recipient):
    alice = make_user("alice")
    f = make_file(repo, alice)
    with pytest.raises(HTTPException) as exc:
        create_grant(repo, f.id, alice.id, recipient, "view")
    assert exc.value.status_code == 404


def test_missing_file_is_not_found(repo, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    with pytest.raises(HTTPException) as exc:
        create_grant(repo, 777, alice.id, bob.id, "view")
    assert exc.value.status_code == 404


def test_cannot_share_with_self(repo, make_user):
    alice = make_user("alice")
    f = make_file(repo, alice)
    with pytest.raises(HTTPException) as exc:
        create_grant(repo, f.id, alice.id, alice.id, "view")
    assert exc.value.status_code == 400


def test_invalid_permission_rejected(repo, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    f = make_file(repo, alice)
    with pytest.raises(HTTPException) as exc:
        create_grant(repo, f.id, alice.id, bob.id, "admin")
    assert exc.value.status_code == 400


def test_revoke_removes_access_and_decrements(repo, session, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    f = make_file(repo, alice)
    create_grant(repo, f.id, alice.id, bob.id, "view")

    revoke_grant(repo, f.id, alice.id, bob.id)

    assert not has_access(repo, f.id, bob.id)
    assert get_stats(session, alice.id).files_shared == 0
    with pytest.raises(HTTPException) as exc:
        revoke_grant(repo, f.id, alice.id, bob.id)
    assert exc.value.status_code == 404


def test_shared_with_lists_files_and_owner_names(repo, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    first = make_file(repo, alice, name="one.pdf")
    make_file(repo, alice, name="two.pdf")
    create_grant(repo, first.id, alice.id, bob.id, "view")

    shared = list_shared_with(repo, bob.id)

    assert [(f.name, owner) for f, owner in shared] == [("one.pdf", "alice")]
    assert list_shared_with(repo, alice.id) == []
