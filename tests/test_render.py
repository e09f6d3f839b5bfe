import pytest

from triagebot.decision.render import build_status_comment
from triagebot.decision.types import Resolution, UserStatus
from triagebot.errors import DecisionError

MERGE_URL = "https://some-comment-id-for-merge.com"
HOLD_URL = "https://some-comment-id-for-hold.com"


def merge():
    return UserStatus(
        source_reference=MERGE_URL,
        rationale="this is my argument for making this decision",
        resolution=Resolution.MERGE,
    )


def hold():
    return UserStatus(
        source_reference=HOLD_URL,
        rationale="this is my argument for making this decision",
        resolution=Resolution.HOLD,
    )


def test_build_comment_with_history():
    history = {"Niklaus": [merge(), hold()], "Barbara": [hold(), merge()]}
    current = {"Niklaus": merge(), "Barbara": merge()}

    assert build_status_comment(history, current) == (
        "| Team member | State |\n"
        "|-------------|-------|\n"
        f"| @Barbara | [~~hold~~]({HOLD_URL})  [~~merge~~]({MERGE_URL})  [**merge**]({MERGE_URL}) |\n"
        f"| @Niklaus | [~~merge~~]({MERGE_URL})  [~~hold~~]({HOLD_URL})  [**merge**]({MERGE_URL}) |"
    )


def test_build_comment_user_without_vote():
    history = {"Niklaus": [merge(), hold()], "Barbara": [hold(), merge()], "Tom": []}
    current = {"Niklaus": merge(), "Barbara": merge(), "Tom": None}

    rows = build_status_comment(history, current).split("\n")
    assert rows[-1] == "| @Tom |  |"
    assert len(rows) == 5


def test_build_comment_no_history():
    history = {"Niklaus": [], "Barbara": []}
    current = {"Niklaus": merge(), "Barbara": merge()}

    assert build_status_comment(history, current) == (
        "| Team member | State |\n"
        "|-------------|-------|\n"
        f"| @Barbara | [**merge**]({MERGE_URL}) |\n"
        f"| @Niklaus | [**merge**]({MERGE_URL}) |"
    )


def test_build_comment_inconsistent_users():
    history = {"Niklaus": [merge(), hold()], "Barbara": [hold(), merge()]}
    current = {"Niklaus": merge(), "Martin": merge()}

    with pytest.raises(DecisionError) as excinfo:
        build_status_comment(history, current)
    assert str(excinfo.value) == "user Martin not present in history statuses list"


def test_build_comment_order_does_not_depend_on_insertion():
    history = {"zed": [], "amy": []}
    a = build_status_comment(history, {"zed": None, "amy": merge()})
    b = build_status_comment(history, {"amy": merge(), "zed": None})
    assert a == b
    assert a.split("\n")[2].startswith("| @amy |")
