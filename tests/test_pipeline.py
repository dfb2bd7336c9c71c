"""End-to-end pipeline runs with shell stand-ins for CMake and git."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from sofaci.build.decider import REASON_BUILD_SCRIPT, REASON_NO_CACHE
from sofaci.build.revision import RevisionTracker
from sofaci.build.steps import BuildSteps
from sofaci.core.config import (
    BuildCommands,
    Commands,
    Config,
    DashboardConfig,
    StatusApiConfig,
)
from sofaci.core.errors import VcsUnavailable
from sofaci.notify import SinkKind, create_dispatcher
from sofaci.notify.dispatcher import Event
from sofaci.state.options import BuildOption
from sofaci.state.status import BuildStatus
from sofaci.workflow.pipeline import Pipeline
from sofaci.workflow.run import PipelineStage

UNIT_REPORT = (
    "printf '<testsuite name=\"all\" tests=\"10\" failures=\"2\" errors=\"0\"/>'"
    " > {reports_dir}/unit.xml"
)
SCENE_REPORT = (
    "printf 'a.scn\\nb.scn\\n' > {reports_dir}/scenes.txt && "
    "printf 'a.scn\\n' > {reports_dir}/successes.txt && "
    "printf 'b.scn\\n' > {reports_dir}/crashes.txt && "
    ": > {reports_dir}/errors.txt"
)


class FakeTracker:
    """RevisionTracker stand-in with canned answers."""

    last_built_revision = staticmethod(RevisionTracker.last_built_revision)

    def __init__(self, message="Fix the solver", revision="abc123",
                 changed=None):
        self.message = message
        self.revision = revision
        self.changed = changed if changed is not None else set()

    def commit_message(self):
        return self.message

    def current_revision(self):
        if isinstance(self.revision, Exception):
            raise self.revision
        return self.revision

    def changed_paths_between(self, old, new):
        if isinstance(self.changed, Exception):
            raise self.changed
        return self.changed


def make_config(**build):
    commands = {
        "configure_full": "echo configure full",
        "configure_incremental": "echo configure incremental",
        "compile": (
            "echo 'a.cpp:1:2: warning: unused variable' && "
            "echo 'a.cpp:1:2: warning: unused variable' && "
            "echo 'b.cpp:3:4: warning: shadowed'"
        ),
        "unit_tests": UNIT_REPORT,
        "scene_tests": SCENE_REPORT,
    }
    commands.update(build)
    return Config(
        status_api=StatusApiConfig(enabled=True),
        dashboard=DashboardConfig(enabled=True),
        commands=Commands(build=BuildCommands(**commands)),
    )


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def pipeline_for(make_target, session):
    def _make(*options, tracker=None, config=None):
        target = make_target(*options)
        config = config or make_config()
        return Pipeline(
            target,
            config,
            tracker=tracker or FakeTracker(),
            dispatcher=create_dispatcher(target, config, session),
        )
    return _make


def run(pipeline):
    return asyncio.run(pipeline.run())


def final_events(pipeline):
    return {
        sink: [d for d in pipeline.dispatcher.events(sink)
               if d.event == Event.FINAL_STATUS]
        for sink in SinkKind
    }


def test_scenario_a_full_build_without_tests(pipeline_for):
    """No cache, no options: full build, one success per sink."""
    pipeline = pipeline_for()

    exit_code = run(pipeline)

    state = pipeline.last_run
    assert exit_code == 0
    assert state.mode.full
    assert state.mode.reason == REASON_NO_CACHE
    assert state.status.current == BuildStatus.SUCCESS
    for deliveries in final_events(pipeline).values():
        assert len(deliveries) == 1
        assert deliveries[0].status == BuildStatus.SUCCESS
        assert deliveries[0].message == "SUCCESS (tests ignored)"

    build_dir = pipeline.target.build_dir
    assert (build_dir / "last-commit-built.txt").read_text() == "abc123\n"
    assert (build_dir / "full-build").exists()
    assert (build_dir / "make-output-gcc-9.txt").exists()
    assert state.stages == [
        PipelineStage.INIT,
        PipelineStage.CONFIGURING,
        PipelineStage.COMPILING,
        PipelineStage.REPORTING,
        PipelineStage.DONE,
    ]


def test_scenario_b_test_problems_keep_success(pipeline_for):
    pipeline = pipeline_for(BuildOption.RUN_UNIT_TESTS)

    exit_code = run(pipeline)

    assert exit_code == 0
    assert pipeline.last_run.test_counts.total == 10
    for deliveries in final_events(pipeline).values():
        assert deliveries[0].status == BuildStatus.SUCCESS
        assert "2 unit-test problems" in deliveries[0].message

    test_results = [
        d for d in pipeline.dispatcher.events(SinkKind.DASHBOARD)
        if d.event == Event.TEST_RESULT
    ]
    assert test_results[0].fields["tests_total"] == "10"
    assert test_results[0].fields["tests_failures"] == "2"


def test_scenario_c_ignored_commit(pipeline_for, session):
    tracker = FakeTracker(message="Update docs [ci-ignore]")
    pipeline = pipeline_for(BuildOption.RUN_UNIT_TESTS, tracker=tracker)

    exit_code = run(pipeline)

    state = pipeline.last_run
    assert exit_code == 0
    assert state.status.current == BuildStatus.IGNORED
    assert state.stages == [PipelineStage.INIT, PipelineStage.DONE]
    assert pipeline.dispatcher.deliveries == []
    session.post.assert_not_called()
    assert not pipeline.target.build_dir.exists()


def test_scenario_d_compile_failure(pipeline_for):
    config = make_config(compile="echo 'error: boom' && false")
    pipeline = pipeline_for(BuildOption.RUN_UNIT_TESTS, config=config)

    exit_code = run(pipeline)

    assert exit_code != 0
    assert pipeline.last_run.status.current == BuildStatus.FAILURE
    for sink, deliveries in final_events(pipeline).items():
        assert len(deliveries) == 1, sink
        assert deliveries[0].status == BuildStatus.FAILURE
        assert deliveries[0].message == "Build failed."
        assert deliveries[0].delivered

    events = [d.event for d in pipeline.dispatcher.events(SinkKind.DASHBOARD)]
    assert events == [Event.PIPELINE_START, Event.FINAL_STATUS]
    assert PipelineStage.TESTING not in pipeline.last_run.stages


def test_unexpected_configure_error(pipeline_for):
    config = make_config(configure_full="sleep 10")
    config.pipeline.command_timeout = 1
    pipeline = pipeline_for(config=config)

    exit_code = run(pipeline)

    assert exit_code == 1
    assert pipeline.last_run.status.current == BuildStatus.ERROR
    deliveries = final_events(pipeline)[SinkKind.STATUS_API]
    assert deliveries[0].message == "Unexpected error, see log for details."


def assert_error_reported(pipeline):
    assert pipeline.last_run.status.current == BuildStatus.ERROR
    for sink, deliveries in final_events(pipeline).items():
        assert len(deliveries) == 1, sink
        assert deliveries[0].status == BuildStatus.ERROR
        assert deliveries[0].delivered


def test_bad_compile_template_is_reported_as_error(pipeline_for):
    pipeline = pipeline_for(config=make_config(compile="make -j{jobs}"))

    exit_code = run(pipeline)

    assert exit_code == 1
    assert_error_reported(pipeline)
    assert pipeline.last_run.failure.step == "compile"


def test_unreadable_cache_is_reported_as_error(pipeline_for):
    pipeline = pipeline_for()

    with patch("sofaci.workflow.nodes.configure.BuildCacheState") as cache:
        cache.load.side_effect = PermissionError("denied")
        exit_code = run(pipeline)

    assert exit_code == 1
    assert_error_reported(pipeline)
    assert "PermissionError" in str(pipeline.last_run.failure)
    assert PipelineStage.COMPILING not in pipeline.last_run.stages


def test_unknown_warning_style_is_reported_as_error(pipeline_for):
    config = make_config()
    config.pipeline.warning_style = "msvc"
    pipeline = pipeline_for(config=config)

    exit_code = run(pipeline)

    assert exit_code == 1
    assert_error_reported(pipeline)
    events = [d.event for d in pipeline.dispatcher.events(SinkKind.DASHBOARD)]
    assert events == [Event.PIPELINE_START, Event.FINAL_STATUS]


def test_lost_full_build_log_keeps_success(pipeline_for):
    pipeline = pipeline_for()

    with patch.object(
        BuildSteps, "archive_make_log", side_effect=OSError("read-only")
    ):
        exit_code = run(pipeline)

    assert exit_code == 0
    assert pipeline.last_run.status.current == BuildStatus.SUCCESS


def test_notifications_in_pipeline_order(pipeline_for, session):
    pipeline = pipeline_for(
        BuildOption.RUN_UNIT_TESTS, BuildOption.RUN_SCENE_TESTS
    )

    run(pipeline)

    for sink in SinkKind:
        events = [d.event for d in pipeline.dispatcher.events(sink)]
        assert events == [
            Event.PIPELINE_START,
            Event.COMPILE_RESULT,
            Event.TEST_RESULT,
            Event.SCENE_RESULT,
            Event.FINAL_STATUS,
        ]

    final = final_events(pipeline)[SinkKind.DASHBOARD][0]
    assert final.message == (
        "SUCCESS (2 unit-test problems, 1 scene-test problems)"
    )
    # Last dashboard post still carries earlier counts
    data = session.post.call_args.kwargs["data"]
    assert data["status"] == "success"
    assert data["warnings"] == "2"
    assert data["tests_total"] == "10"
    assert data["scenes_crashes"] == "1"
    assert data["message"] == (
        "SUCCESS (2 unit-test problems, 1 scene-test problems)"
    )


def test_incremental_build_keeps_directory(pipeline_for):
    pipeline = pipeline_for(tracker=FakeTracker(changed={"src/a.cpp"}))
    build_dir = pipeline.target.build_dir
    build_dir.mkdir()
    (build_dir / "CMakeCache.txt").write_text("cache")
    (build_dir / "last-commit-built.txt").write_text("old000\n")
    (build_dir / "full-build").touch()

    exit_code = run(pipeline)

    assert exit_code == 0
    assert not pipeline.last_run.mode.full
    assert (build_dir / "CMakeCache.txt").exists()
    assert (build_dir / "last-commit-built.txt").read_text() == "old000\n"
    assert not (build_dir / "full-build").exists()
    assert (build_dir / "make-output.txt").exists()
    assert "configure incremental" in (build_dir / "cmake-output.txt").read_text()
    assert pipeline.last_run.warnings == 2


def test_cmake_change_forces_full_build(pipeline_for):
    tracker = FakeTracker(changed={"SofaKernel/cmake/SofaMacros.cmake"})
    pipeline = pipeline_for(tracker=tracker)
    build_dir = pipeline.target.build_dir
    build_dir.mkdir()
    (build_dir / "CMakeCache.txt").write_text("cache")
    (build_dir / "last-commit-built.txt").write_text("old000\n")

    run(pipeline)

    assert pipeline.last_run.mode.reason == REASON_BUILD_SCRIPT
    assert not (build_dir / "CMakeCache.txt").exists()
    assert (build_dir / "last-commit-built.txt").read_text() == "abc123\n"


def test_git_unavailable_for_diff_means_full_build(pipeline_for):
    tracker = FakeTracker(changed=VcsUnavailable("git diff", "bad object"))
    pipeline = pipeline_for(tracker=tracker)
    build_dir = pipeline.target.build_dir
    build_dir.mkdir()
    (build_dir / "CMakeCache.txt").write_text("cache")
    (build_dir / "last-commit-built.txt").write_text("old000\n")

    exit_code = run(pipeline)

    assert exit_code == 0
    assert pipeline.last_run.mode.reason == REASON_BUILD_SCRIPT


def test_unknown_revision_still_reports_to_dashboard(pipeline_for):
    tracker = FakeTracker(revision=VcsUnavailable("git rev-parse HEAD"))
    pipeline = pipeline_for(tracker=tracker)

    exit_code = run(pipeline)

    assert exit_code == 0
    finals = final_events(pipeline)
    assert finals[SinkKind.STATUS_API][0].delivered is False
    assert finals[SinkKind.DASHBOARD][0].delivered is True


def test_sink_outage_does_not_fail_build(pipeline_for, session):
    session.post.side_effect = requests.ConnectionError("network down")
    pipeline = pipeline_for()

    exit_code = run(pipeline)

    assert exit_code == 0
    assert not any(d.delivered for d in pipeline.dispatcher.deliveries)


def test_broken_status_context_does_not_block_dashboard(pipeline_for):
    config = make_config()
    config.status_api.context = "[ci] {branch}"
    pipeline = pipeline_for(config=config)

    exit_code = run(pipeline)

    assert exit_code == 0
    assert not any(
        d.delivered for d in pipeline.dispatcher.events(SinkKind.STATUS_API)
    )
    dashboard = pipeline.dispatcher.events(SinkKind.DASHBOARD)
    assert [d.event for d in dashboard] == [
        Event.PIPELINE_START, Event.COMPILE_RESULT, Event.FINAL_STATUS
    ]
    assert all(d.delivered for d in dashboard)


@pytest.mark.parametrize("result,status,dashboard,message", [
    ("FAILURE", "failure", "fail", "Build failed."),
    ("ERROR", "error", "fail", "Unexpected error, see log for details."),
    ("ABORTED", "failure", "cancel", "Build canceled."),
])
def test_post_build_reports_scheduler_result(
    pipeline_for, session, result, status, dashboard, message
):
    pipeline = pipeline_for()
    build_dir = pipeline.target.build_dir
    build_dir.mkdir()
    (build_dir / "build-result").write_text(result + "\n")

    exit_code = asyncio.run(pipeline.report_scheduler_result("abc123"))

    assert exit_code == 1
    posts = {call.args[0]: call.kwargs for call in session.post.call_args_list}
    api = posts["https://api.github.com/repos/sofa-framework/sofa/statuses/abc123"]
    assert api["json"]["state"] == status
    assert api["json"]["description"] == message
    dash = posts[pipeline.config.dashboard.url]
    assert dash["data"]["status"] == dashboard


@pytest.mark.parametrize("content", [None, "SUCCESS", ""])
def test_post_build_nothing_to_report(pipeline_for, session, content):
    pipeline = pipeline_for()
    build_dir = pipeline.target.build_dir
    build_dir.mkdir()
    if content is not None:
        (build_dir / "build-result").write_text(content)

    exit_code = asyncio.run(pipeline.report_scheduler_result("abc123"))

    assert exit_code == 0
    session.post.assert_not_called()
