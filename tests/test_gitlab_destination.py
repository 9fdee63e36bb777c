"""Tests for GitLabDestination project creation."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from gitlab.exceptions import GitlabCreateError, GitlabGetError

from capabilities import CreateOutcome
from config import CloneMethod, GitLabConfig
from errors import FatalSyncError, PublishError
from gitlab_destination import GitLabDestination
from models import Visibility


def _make_destination(namespace_id=None, **kwargs) -> GitLabDestination:
    kwargs.setdefault('wait', False)
    destination = GitLabDestination(
        GitLabConfig(url='https://gitlab.com/', token='glpat-secret', **kwargs)
    )
    destination.rate_limiter.wait_if_needed = lambda *_args, **_kwargs: None
    destination.api = Mock()
    destination.namespace_path = 'octocat'
    destination.namespace_id = namespace_id
    return destination


def test_existing_project_is_not_recreated() -> None:
    destination = _make_destination()

    outcome = destination.create_repository('alpha', Visibility.PUBLIC)

    assert outcome == CreateOutcome.ALREADY_EXISTS
    destination.api.projects.get.assert_called_once_with('octocat/alpha')
    destination.api.projects.create.assert_not_called()


def test_missing_project_is_created_with_visibility() -> None:
    destination = _make_destination()
    destination.api.projects.get.side_effect = GitlabGetError('404 Project Not Found', 404)

    outcome = destination.create_repository('alpha', Visibility.INTERNAL)

    assert outcome == CreateOutcome.CREATED
    destination.api.projects.create.assert_called_once_with(
        {'name': 'alpha', 'path': 'alpha', 'visibility': 'internal'}
    )


def test_group_namespace_is_passed_on_create() -> None:
    destination = _make_destination(namespace_id=7)
    destination.api.projects.get.side_effect = GitlabGetError('404 Project Not Found', 404)

    destination.create_repository('alpha', Visibility.PRIVATE)

    assert destination.api.projects.create.call_args.args[0]['namespace_id'] == 7


def test_name_taken_race_counts_as_existing() -> None:
    destination = _make_destination()
    destination.api.projects.get.side_effect = GitlabGetError('404 Project Not Found', 404)
    destination.api.projects.create.side_effect = GitlabCreateError(
        "400: {'name': ['has already been taken']}", 400
    )

    assert destination.create_repository('alpha', Visibility.PUBLIC) == CreateOutcome.ALREADY_EXISTS


def test_other_create_errors_raise() -> None:
    destination = _make_destination()
    destination.api.projects.get.side_effect = GitlabGetError('404 Project Not Found', 404)
    destination.api.projects.create.side_effect = GitlabCreateError('403 Forbidden', 403)

    with pytest.raises(PublishError):
        destination.create_repository('alpha', Visibility.PUBLIC)


def test_lookup_errors_raise() -> None:
    destination = _make_destination()
    destination.api.projects.get.side_effect = GitlabGetError('500 Internal Server Error', 500)

    with pytest.raises(PublishError):
        destination.create_repository('alpha', Visibility.PUBLIC)


@patch.object(GitLabDestination, 'wait_until_available', return_value=False)
def test_unavailable_new_project_raises(_mock_wait: Mock) -> None:
    destination = _make_destination(wait=True)
    destination.api.projects.get.side_effect = GitlabGetError('404 Project Not Found', 404)

    with pytest.raises(PublishError):
        destination.create_repository('alpha', Visibility.PUBLIC)


@patch('gitlab_destination.time.sleep')
@patch('gitlab_destination.requests.get')
def test_wait_until_available_polls(mock_get: Mock, mock_sleep: Mock) -> None:
    destination = _make_destination()
    mock_get.side_effect = [Mock(status_code=404), Mock(status_code=200)]

    assert destination.wait_until_available('alpha') is True
    url = mock_get.call_args.args[0]
    assert url == 'https://gitlab.com/api/v4/projects/octocat%2Falpha'
    assert mock_sleep.call_count == 1


def test_push_url_and_credentials() -> None:
    https_destination = _make_destination()
    assert https_destination.push_url('alpha') == 'https://gitlab.com/octocat/alpha.git'
    assert https_destination.git_credentials() == ('oauth2', 'glpat-secret')

    ssh_destination = _make_destination(push_method=CloneMethod.SSH)
    assert ssh_destination.push_url('alpha') == 'git@gitlab.com:octocat/alpha.git'
    assert ssh_destination.git_credentials() is None


def test_group_namespace_resolution() -> None:
    destination = _make_destination(namespace='Backups')
    destination.api.namespaces.get.return_value = SimpleNamespace(id=7, full_path='backups')

    destination._resolve_namespace('octocat')

    assert destination.namespace_path == 'backups'
    assert destination.namespace_id == 7


def test_missing_namespace_is_fatal() -> None:
    destination = _make_destination(namespace='nope')
    destination.api.namespaces.get.side_effect = GitlabGetError('404 Namespace Not Found', 404)

    with pytest.raises(FatalSyncError):
        destination._resolve_namespace('octocat')


def test_own_namespace_by_default() -> None:
    destination = _make_destination()

    destination._resolve_namespace('octocat')

    assert destination.namespace_path == 'octocat'
    assert destination.namespace_id is None
