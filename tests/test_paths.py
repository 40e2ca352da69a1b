from concurrent.futures import Future

import pytest

from gcp_templates.pubsub.futures import all_of, completed_future, failed_future, transform
from gcp_templates.pubsub.paths import to_project_path, to_subscription_path, to_topic_path


def test_short_names_are_expanded():
    assert to_topic_path("orders", "acme") == "projects/acme/topics/orders"
    assert to_subscription_path("orders-sub", "acme") == "projects/acme/subscriptions/orders-sub"
    assert to_project_path("acme") == "projects/acme"


def test_full_paths_pass_through():
    assert to_topic_path("projects/other/topics/t") == "projects/other/topics/t"
    assert to_subscription_path("projects/other/subscriptions/s", "acme") == "projects/other/subscriptions/s"


@pytest.mark.parametrize("name,project", [
    ("", "acme"),
    ("orders", None),
    ("projects/acme/subscriptions/s", "acme"),
    ("a/b", "acme"),
])
def test_invalid_topic_names(name, project):
    with pytest.raises(ValueError):
        to_topic_path(name, project)


def test_transform_maps_result_and_errors():
    assert transform(completed_future(2), lambda x: x * 3).result(timeout=1) == 6

    failed = transform(failed_future(KeyError("k")), lambda x: x)
    assert isinstance(failed.exception(timeout=1), KeyError)

    raising = transform(completed_future(0), lambda x: 1 / x)
    assert isinstance(raising.exception(timeout=1), ZeroDivisionError)


def test_all_of_waits_for_every_future():
    first, second = Future(), Future()
    combined = all_of([first, second])

    first.set_result("ignored")
    assert not combined.done()

    second.set_result("ignored")
    assert combined.result(timeout=1) is None


def test_all_of_reports_failure():
    pending = Future()
    combined = all_of([failed_future(RuntimeError("boom")), pending])
    pending.set_result(None)

    assert isinstance(combined.exception(timeout=1), RuntimeError)


def test_all_of_empty():
    assert all_of([]).result(timeout=1) is None
