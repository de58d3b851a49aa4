import threading
from datetime import date, timedelta

import pytest

from db import db
from models import BoardColumnModel, BurndownModel, CollaboratorModel, SprintModel, TaskModel
from services.entities import BACKLOG
from services.errors import DuplicateEntry, NotFound, OperationFailed, PermissionDenied, ValidationFailed
from services.realtime import task_inserts
from services.workspace import registry


def assert_backlog_invariant(cache):
    for task in cache.tasks:
        assert (task.status == BACKLOG) == (task.sprint_id is None), task


@pytest.fixture
def cache(owner_workspace):
    return owner_workspace.cache


@pytest.fixture
def project(cache):
    return cache.add_project({"title": "Website Redesign"})


@pytest.fixture
def sprint(cache, project):
    return cache.add_sprint({
        "project_id": project.id, "title": "Sprint 1",
        "start_date": date(2024, 1, 1), "end_date": date(2024, 1, 14),
    })


@pytest.fixture
def shared_with_bob(cache, project, bob, open_workspace):
    """Bob joins the project with the given role and signs in"""
    def share(role = "team_member"):
        cache.add_collaborator(project.id, "bob", role)
        return open_workspace("bob")
    return share


class TestProjects:
    def test_new_project_is_owned_by_current_user(self, cache, alice):
        project = cache.add_project({"title": "Website Redesign"})

        assert project.title == "Website Redesign"
        assert project.end_goal is None
        assert project.is_collaboration is False
        assert project.owner_id == alice.id
        assert cache.get_project(project.id) == project

    def test_project_title_is_required(self, cache):
        with pytest.raises(ValidationFailed):
            cache.add_project({"title": "   "})
        assert cache.projects == []

    def test_update_keeps_owner_name(self, cache, project):
        updated = cache.update_project(project.id, {"end_goal": "Launch by March"})
        assert updated.end_goal == "Launch by March"
        assert updated.owner_name == project.owner_name
        assert cache.get_project(project.id).end_goal == "Launch by March"

    def test_delete_removes_everything_under_the_project(self, cache, project, sprint, bob):
        second = cache.add_sprint({
            "project_id": project.id, "title": "Sprint 2",
            "start_date": date(2024, 1, 15), "end_date": date(2024, 1, 28),
        })
        cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Header", "story_points": 3})
        cache.add_task({"project_id": project.id, "sprint_id": second.id, "title": "Footer", "story_points": 2})
        cache.add_task({"project_id": project.id, "title": "Idea"})
        cache.add_column(sprint.id, "review")
        cache.add_collaborator(project.id, "bob", "team_member")

        cache.delete_project(project.id)

        assert cache.get_project(project.id) is None
        assert cache.sprints_for(project.id) == []
        assert cache.tasks_for_project(project.id) == []
        assert project.id not in cache.burndown
        assert SprintModel.query.filter_by(project_id = project.id).count() == 0
        assert TaskModel.query.filter_by(project_id = project.id).count() == 0
        assert BurndownModel.query.filter_by(project_id = project.id).count() == 0
        assert CollaboratorModel.query.filter_by(project_id = project.id).count() == 0
        assert BoardColumnModel.query.count() == 0

    def test_collaborator_cannot_delete_project(self, project, shared_with_bob):
        bob = shared_with_bob("scrum_master")
        with pytest.raises(PermissionDenied):
            bob.cache.delete_project(project.id)
        assert bob.cache.get_project(project.id) is not None


class TestSprints:
    def test_sprint_of_exactly_28_days_is_accepted(self, cache, project):
        sprint = cache.add_sprint({
            "project_id": project.id, "title": "Long",
            "start_date": date(2024, 1, 1), "end_date": date(2024, 1, 29),
        })
        assert sprint.status == "planned"
        assert cache.sprints_for(project.id) == [sprint]

    def test_sprint_longer_than_28_days_is_rejected(self, cache, project):
        with pytest.raises(ValidationFailed) as raised:
            cache.add_sprint({
                "project_id": project.id, "title": "Too long",
                "start_date": date(2024, 1, 1), "end_date": date(2024, 1, 30),
            })
        assert "between 1 and 28 days" in raised.value.message
        assert cache.sprints_for(project.id) == []

    def test_end_before_start_is_rejected(self, cache, project):
        with pytest.raises(ValidationFailed):
            cache.add_sprint({
                "project_id": project.id, "title": "Backwards",
                "start_date": date(2024, 1, 10), "end_date": date(2024, 1, 10),
            })

    def test_new_sprint_cannot_start_in_the_past(self, cache, project):
        with pytest.raises(ValidationFailed):
            cache.add_sprint({
                "project_id": project.id, "title": "Late",
                "start_date": date(2023, 12, 30), "end_date": date(2024, 1, 5),
            })

    def test_edit_beyond_28_days_never_reaches_the_store(self, owner_workspace, sprint, mocker):
        store_update = mocker.spy(owner_workspace.sprints, "update")
        with pytest.raises(ValidationFailed):
            owner_workspace.cache.update_sprint(sprint.id, {"end_date": date(2024, 2, 5)})
        store_update.assert_not_called()
        assert owner_workspace.cache.get_sprint(sprint.id).end_date == date(2024, 1, 14)

    def test_existing_sprint_may_keep_past_start(self, cache, sprint, clock):
        clock.advance(timedelta(days = 10))
        updated = cache.update_sprint(sprint.id, {"status": "in-progress"})
        assert updated.status == "in-progress"
        assert updated.start_date == date(2024, 1, 1)

    def test_delete_sprint_removes_its_tasks(self, cache, project, sprint):
        cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Header"})
        cache.delete_sprint(sprint.id)
        assert cache.get_sprint(sprint.id) is None
        assert cache.tasks_for_sprint(sprint.id) == []
        assert TaskModel.query.filter_by(sprint_id = sprint.id).count() == 0

    def test_team_member_cannot_delete_sprint(self, project, sprint, shared_with_bob, mocker):
        """Rejected by the role check before any store call"""
        bob = shared_with_bob("team_member")
        store_delete = mocker.spy(bob.sprints, "delete")
        before = list(bob.cache.sprints)

        with pytest.raises(PermissionDenied):
            bob.cache.delete_sprint(sprint.id)

        store_delete.assert_not_called()
        assert bob.cache.sprints == before
        assert SprintModel.query.filter_by(id = sprint.id).count() == 1

    def test_reload_replaces_instead_of_appending(self, cache, owner_workspace, project, sprint, alice):
        cache.load_sprints(project.id)
        cache.load_sprints(project.id)
        assert len(cache.sprints_for(project.id)) == 1

        # Written behind the cache's back
        owner_workspace.sprints.create({
            "project_id": project.id, "title": "Sprint 2",
            "start_date": date(2024, 1, 15), "end_date": date(2024, 1, 20),
        }, alice.id)
        SprintModel.query.filter_by(id = sprint.id).delete()
        TaskModel.query.filter_by(sprint_id = sprint.id).delete()

        fetched = cache.load_sprints(project.id)

        assert [s.title for s in fetched] == ["Sprint 2"]
        assert [s.title for s in cache.sprints_for(project.id)] == ["Sprint 2"]


class TestTasks:
    def test_completion_date_is_set_once(self, cache, project, sprint, clock):
        task = cache.add_task({
            "project_id": project.id, "sprint_id": sprint.id,
            "title": "Login form", "story_points": 5, "status": "todo",
        })
        assert task.completion_date is None

        clock.advance(timedelta(days = 2))
        done = cache.update_task(task.id, {"status": "done"})
        assert done.completion_date == date(2024, 1, 3)

        clock.advance(timedelta(days = 1))
        renamed = cache.update_task(task.id, {"title": "Login and signup form"})
        assert renamed.completion_date == date(2024, 1, 3)
        assert cache.get_task(task.id).completion_date == date(2024, 1, 3)

    def test_task_without_sprint_goes_to_backlog(self, cache, project):
        task = cache.add_task({"project_id": project.id, "title": "Dark mode"})
        assert task.status == BACKLOG
        assert task.sprint_id is None
        assert cache.backlog_for(project.id) == [task]

    def test_backlog_invariant_holds_across_moves(self, cache, project, sprint):
        task = cache.add_task({"project_id": project.id, "title": "Dark mode", "story_points": 3})
        assert_backlog_invariant(cache)

        moved = cache.update_task(task.id, {"sprint_id": sprint.id})
        assert (moved.sprint_id, moved.status) == (sprint.id, "todo")
        assert_backlog_invariant(cache)

        cache.update_task(task.id, {"status": "in-progress"})
        back = cache.update_task(task.id, {"status": BACKLOG})
        assert (back.sprint_id, back.status) == (None, BACKLOG)
        assert_backlog_invariant(cache)

        again = cache.update_task(task.id, {"sprint_id": sprint.id, "status": "done"})
        assert again.status == "done"
        removed = cache.update_task(task.id, {"sprint_id": None})
        assert removed.status == BACKLOG
        assert_backlog_invariant(cache)

    def test_inconsistent_placement_is_rejected(self, cache, project, sprint):
        with pytest.raises(ValidationFailed):
            cache.add_task({"project_id": project.id, "title": "X", "status": "todo"})
        with pytest.raises(ValidationFailed):
            cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "X", "status": BACKLOG})

        task = cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Y"})
        with pytest.raises(ValidationFailed):
            cache.update_task(task.id, {"sprint_id": None, "status": "todo"})
        assert cache.get_task(task.id) == task

    def test_task_cannot_join_sprint_of_another_project(self, cache, project, sprint):
        other = cache.add_project({"title": "Other"})
        task = cache.add_task({"project_id": other.id, "title": "Stray"})
        with pytest.raises(ValidationFailed):
            cache.update_task(task.id, {"sprint_id": sprint.id})

    def test_invalid_story_points_and_priority(self, cache, project):
        with pytest.raises(ValidationFailed):
            cache.add_task({"project_id": project.id, "title": "X", "story_points": -1})
        with pytest.raises(ValidationFailed):
            cache.add_task({"project_id": project.id, "title": "X", "priority": "urgent"})

    def test_assigned_to_round_trips(self, cache, project):
        task = cache.add_task({"project_id": project.id, "title": "X", "assigned_to": "bob"})
        assert task.assigned_to == "bob"
        assert db.session.get(TaskModel, task.id).assign_to == "bob"

    def test_failed_write_leaves_cache_unchanged(self, owner_workspace, project, sprint, mocker):
        cache = owner_workspace.cache
        mocker.patch.object(
            owner_workspace.tasks, "create", side_effect = OperationFailed("task", "create", "fetch failed")
        )
        before = list(cache.tasks)
        with pytest.raises(OperationFailed):
            cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Lost"})
        assert cache.tasks == before

    def test_task_changes_refresh_burndown(self, cache, project, sprint):
        cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A", "story_points": 8})
        series = cache.burndown[project.id]
        assert series[0].ideal_points == 8
        stored = BurndownModel.query.filter_by(project_id = project.id).order_by(BurndownModel.date).all()
        assert [row.ideal_points for row in stored] == [point.ideal_points for point in series]

    def test_burndown_store_failure_keeps_computed_series(self, owner_workspace, project, sprint, mocker):
        mocker.patch.object(
            owner_workspace.engine.repository, "upsert", side_effect = OperationFailed("burndown", "upsert", "network error")
        )
        cache = owner_workspace.cache
        task = cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A", "story_points": 4})
        assert cache.get_task(task.id) == task
        assert cache.burndown[project.id][0].ideal_points == 4

    def test_team_member_can_add_but_not_delete_until_promoted(self, cache, project, sprint, shared_with_bob):
        bob = shared_with_bob("team_member")
        task = bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Bob's task"})

        with pytest.raises(PermissionDenied):
            bob.cache.delete_task(task.id)

        bob_row = next(c for c in cache.list_collaborators(project.id) if c.username == "bob")
        cache.update_collaborator_role(project.id, bob_row.id, "scrum_master")

        bob.cache.delete_task(task.id)
        assert bob.cache.get_task(task.id) is None


class TestSessionLifecycle:
    def test_login_loads_owned_and_shared_projects(self, cache, project, sprint, bob, open_workspace):
        cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A"})
        cache.add_task({"project_id": project.id, "title": "B"})
        cache.add_collaborator(project.id, "bob", "product_owner")

        bob_workspace = open_workspace("bob")
        own = bob_workspace.cache.add_project({"title": "Bob's own"})

        shared = bob_workspace.cache.get_project(project.id)
        assert shared.is_collaboration is True
        assert shared.role == "product_owner"
        assert shared.owner_name == "alice"
        assert bob_workspace.cache.collaborations() == [shared]
        assert len(bob_workspace.cache.tasks_for_project(project.id)) == 2
        assert bob_workspace.cache.get_project(own.id).is_collaboration is False

    def test_logout_resets_all_collections(self, owner_workspace, project, sprint, alice):
        cache = owner_workspace.cache
        cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A", "story_points": 2})

        registry().close(alice.id)

        assert cache.projects == []
        assert cache.sprints == []
        assert cache.tasks == []
        assert cache.burndown == {}
        assert alice.id not in registry()

    def test_next_login_sees_persisted_state(self, owner_workspace, project, sprint, alice):
        owner_workspace.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A"})
        registry().close(alice.id)

        fresh = registry().get(alice.id)

        assert fresh is not owner_workspace
        assert [p.id for p in fresh.cache.projects] == [project.id]
        assert len(fresh.cache.tasks_for_sprint(sprint.id)) == 1
        assert fresh.cache.burndown[project.id]

    def test_failed_read_degrades_to_empty(self, owner_workspace, project, sprint, mocker, caplog):
        mocker.patch.object(
            owner_workspace.sprints, "fetch_by_parent", side_effect = OperationFailed("sprint", "fetch", "fetch failed")
        )
        assert owner_workspace.cache.load_sprints(project.id) == []
        assert "Could not load sprints" in caplog.text

    def test_burndown_is_computed_when_nothing_is_stored(self, cache, project):
        BurndownModel.query.filter_by(project_id = project.id).delete()
        db.session.commit()
        cache.burndown.pop(project.id, None)
        series = cache.get_burndown(project.id)
        assert len(series) == 21
        assert series[0].date == date(2024, 1, 1)

    def test_unknown_project_is_not_found(self, cache):
        with pytest.raises(NotFound):
            cache.get_burndown(999)
        with pytest.raises(NotFound):
            cache.timeline(999)


class TestCollaborators:
    def test_add_by_email_or_username(self, cache, project, bob, make_user):
        make_user("carol")
        by_email = cache.add_collaborator(project.id, "bob@example.com", "team_member")
        by_name = cache.add_collaborator(project.id, "carol", "scrum_master")

        assert (by_email.username, by_email.role) == ("bob", "team_member")
        assert (by_name.email, by_name.role) == ("carol@example.com", "scrum_master")
        assert {c.username for c in cache.list_collaborators(project.id)} == {"bob", "carol"}

    def test_same_user_cannot_be_added_twice(self, cache, project, bob):
        cache.add_collaborator(project.id, "bob", "team_member")
        with pytest.raises(DuplicateEntry):
            cache.add_collaborator(project.id, "bob", "scrum_master")

    def test_owner_cannot_be_collaborator(self, cache, project):
        with pytest.raises(ValidationFailed):
            cache.add_collaborator(project.id, "alice", "team_member")

    def test_unknown_user(self, cache, project):
        with pytest.raises(NotFound):
            cache.add_collaborator(project.id, "nobody", "team_member")

    def test_unknown_role(self, cache, project, bob):
        with pytest.raises(ValidationFailed):
            cache.add_collaborator(project.id, "bob", "viewer")

    def test_only_owner_manages_collaborators(self, cache, project, shared_with_bob, make_user):
        make_user("carol")
        bob = shared_with_bob("scrum_master")
        with pytest.raises(PermissionDenied):
            bob.cache.add_collaborator(project.id, "carol", "team_member")

    def test_removed_collaborator_loses_access(self, cache, project, sprint, shared_with_bob):
        bob = shared_with_bob("team_member")
        row = cache.list_collaborators(project.id)[0]

        cache.remove_collaborator(project.id, row.id)

        with pytest.raises(NotFound):
            bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Too late"})
        assert bob.cache.get_project(project.id) is None
        assert bob.cache.sprints_for(project.id) == []
        assert cache.list_collaborators(project.id) == []


class TestBoardColumns:
    def test_defaults_then_custom_columns(self, cache, sprint):
        review = cache.add_column(sprint.id, "review")
        columns = cache.list_columns(sprint.id)

        assert [c.title for c in columns] == ["todo", "in-progress", "done", "review"]
        assert [c.is_default for c in columns] == [True, True, True, False]
        assert review.order_index == 3
        assert cache.add_column(sprint.id, "qa").order_index == 4

    def test_built_in_titles_are_rejected(self, cache, sprint):
        with pytest.raises(ValidationFailed):
            cache.add_column(sprint.id, "done")
        with pytest.raises(ValidationFailed):
            cache.add_column(sprint.id, "backlog")

    def test_duplicate_title_is_rejected(self, cache, sprint):
        cache.add_column(sprint.id, "review")
        with pytest.raises(DuplicateEntry):
            cache.add_column(sprint.id, "review")

    def test_deleting_column_moves_tasks_to_todo(self, cache, project, sprint):
        column = cache.add_column(sprint.id, "review")
        task = cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "A", "status": "review"})

        moved = cache.delete_column(sprint.id, column.id)

        assert moved == 1
        assert cache.get_task(task.id).status == "todo"
        assert [c.title for c in cache.list_columns(sprint.id)] == ["todo", "in-progress", "done"]

    def test_column_of_another_sprint_is_not_found(self, cache, project, sprint):
        other = cache.add_sprint({
            "project_id": project.id, "title": "Sprint 2",
            "start_date": date(2024, 1, 15), "end_date": date(2024, 1, 20),
        })
        column = cache.add_column(other.id, "review")
        with pytest.raises(NotFound):
            cache.delete_column(sprint.id, column.id)

    def test_team_member_cannot_manage_columns(self, sprint, shared_with_bob):
        bob = shared_with_bob("team_member")
        with pytest.raises(PermissionDenied):
            bob.cache.add_column(sprint.id, "review")


class TestFollow:
    def test_tasks_inserted_elsewhere_are_appended(self, cache, project, sprint, shared_with_bob):
        bob = shared_with_bob("team_member")

        with cache.follow(project.id):
            task = bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "From Bob"})
            assert cache.get_task(task.id).title == "From Bob"

        later = bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Unseen"})
        assert cache.get_task(later.id) is None

    def test_own_inserts_are_not_duplicated(self, cache, project, sprint):
        with cache.follow(project.id):
            task = cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Mine"})
        assert [t.id for t in cache.tasks].count(task.id) == 1

    def test_logout_ends_subscriptions(self, owner_workspace, project, sprint, shared_with_bob, alice):
        bob = shared_with_bob("team_member")
        cache = owner_workspace.cache
        subscription = cache.follow(project.id)
        count = task_inserts.subscriber_count

        registry().close(alice.id)
        bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "After logout"})

        assert subscription.active is False
        assert task_inserts.subscriber_count == count - 1
        assert cache.tasks == []

    def test_replaced_workspace_stops_following(self, owner_workspace, project, open_workspace):
        subscription = owner_workspace.cache.follow(project.id)

        replacement = open_workspace("alice")

        assert replacement is not owner_workspace
        assert subscription.active is False


def lock_is_free(lock):
    """Try the lock from another thread, as a second request would"""
    acquired = []

    def attempt():
        got = lock.acquire(blocking = False)
        if got:
            lock.release()
        acquired.append(got)

    thread = threading.Thread(target = attempt)
    thread.start()
    thread.join()
    return acquired[0]


class TestWorkspaceLock:
    def test_writes_run_holding_the_workspace_lock(self, owner_workspace, project, mocker):
        seen = []
        update = owner_workspace.projects.update

        def recording_update(*args, **kwargs):
            seen.append(lock_is_free(owner_workspace.lock))
            return update(*args, **kwargs)

        mocker.patch.object(owner_workspace.projects, "update", side_effect = recording_update)

        assert lock_is_free(owner_workspace.lock)
        owner_workspace.cache.update_project(project.id, {"title": "Shop v2"})

        assert seen == [False]
        assert lock_is_free(owner_workspace.lock)

    def test_cache_shares_the_workspace_lock(self, owner_workspace):
        assert owner_workspace.cache.lock is owner_workspace.lock


class TestTwoWorkspaces:
    """Owner and collaborator write to the same project from their own workspaces"""

    @pytest.fixture
    def tasks(self, cache, project, sprint):
        return [
            cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": title, "story_points": 5})
            for title in ("Login form", "Signup form")
        ]

    def test_stored_burndown_keeps_collaborator_progress(self, cache, project, tasks, shared_with_bob, open_workspace):
        bob = shared_with_bob("team_member")
        first, second = tasks

        bob.cache.update_task(first.id, {"status": "done"})
        # An unrelated edit by the owner rebuilds the shared series
        cache.update_task(second.id, {"title": "Signup and login form"})

        stored = BurndownModel.query.filter_by(project_id = project.id, date = date(2024, 1, 1)).one()
        assert (stored.ideal_points, stored.actual_points) == (10, 5)
        assert cache.burndown[project.id][0].actual_points == 5
        assert cache.get_task(first.id).status == "done"

        reloaded = open_workspace("alice").cache.get_burndown(project.id)
        assert reloaded[0].actual_points == 5

    def test_owner_updates_task_the_collaborator_created(self, cache, project, sprint, shared_with_bob):
        bob = shared_with_bob("team_member")
        created = bob.cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "From Bob"})
        assert cache.get_task(created.id) is None

        assert cache.fetch_task(created.id).title == "From Bob"
        moved = cache.update_task(created.id, {"status": "in-progress"})

        assert moved.status == "in-progress"
        assert cache.get_task(created.id).status == "in-progress"

    def test_owner_uses_sprint_the_collaborator_created(self, cache, project, shared_with_bob):
        bob = shared_with_bob("scrum_master")
        sprint = bob.cache.add_sprint({
            "project_id": project.id, "title": "Bob's sprint",
            "start_date": date(2024, 1, 2), "end_date": date(2024, 1, 9),
        })

        task = cache.add_task({"project_id": project.id, "sprint_id": sprint.id, "title": "Planned by Bob"})

        assert task.sprint_id == sprint.id
        assert [s.title for s in cache.sprints_for(project.id)] == ["Bob's sprint"]

    def test_completion_date_set_by_collaborator_is_kept(self, cache, project, tasks, shared_with_bob, clock):
        bob = shared_with_bob("team_member")
        first = tasks[0]
        bob.cache.update_task(first.id, {"status": "done"})

        clock.advance(timedelta(days = 2))
        again = cache.update_task(first.id, {"status": "done"})

        assert again.completion_date == date(2024, 1, 1)

    def test_project_shared_after_login_shows_up(self, cache, project, sprint, bob, open_workspace):
        bob_workspace = open_workspace("bob")
        assert bob_workspace.cache.get_project(project.id) is None

        cache.add_collaborator(project.id, "bob", "team_member")

        shared = bob_workspace.cache.fetch_project(project.id)
        assert (shared.is_collaboration, shared.role) == (True, "team_member")
        assert [s.id for s in bob_workspace.cache.sprints_for(project.id)] == [sprint.id]
        assert [p.id for p in bob_workspace.cache.refresh_projects()] == [project.id]

    def test_unshared_project_is_dropped_on_refresh(self, cache, project, shared_with_bob):
        bob = shared_with_bob("team_member")
        row = cache.list_collaborators(project.id)[0]

        cache.remove_collaborator(project.id, row.id)

        assert bob.cache.refresh_projects() == []
        assert bob.cache.tasks_for_project(project.id) == []
