import json

import pytest

from callcenter_tools.mcp_servers import TestAnalyzerServer, TestDataServer, ToolServer


def _text(result):
    assert len(result.content) == 1
    return result.content[0].text


# ================================================================================
# Server base
# ================================================================================

def test_server_without_tools_cannot_be_built():
    class Incomplete(ToolServer):
        name = "incomplete"

        def handlers(self):
            return {}

    with pytest.raises(TypeError, match="tools"):
        Incomplete()


# ================================================================================
# Test data generator
# ================================================================================

def test_data_server_declares_its_tools():
    tools = {t.name: t for t in TestDataServer().tools()}

    assert set(tools) == {
        "generate_user_data",
        "generate_campaign_data",
        "generate_lead_data",
        "generate_test_scenarios",
    }
    assert tools["generate_user_data"].inputSchema["required"] == ["count"]
    assert tools["generate_test_scenarios"].inputSchema["properties"]["testType"]["enum"] == [
        "RBL", "IRC", "Sanity", "Campaign",
    ]


@pytest.mark.asyncio
async def test_generate_user_data_json():
    result = await TestDataServer(seed=5).call("generate_user_data", {"count": 2, "roles": ["admin"]})

    assert not result.isError
    header, body = _text(result).split("\n\n", 1)
    assert header == "Generated 2 user(s) in json format:"
    assert [u["role"] for u in json.loads(body)] == ["admin", "admin"]


@pytest.mark.asyncio
async def test_generate_campaign_data_csv():
    result = await TestDataServer(seed=5).call(
        "generate_campaign_data", {"count": 3, "type": "inbound", "format": "csv"}
    )

    lines = _text(result).split("\n\n", 1)[1].splitlines()
    assert lines[0].startswith("name,type,dialMode")
    assert len(lines) == 4


@pytest.mark.asyncio
async def test_generate_lead_data_defaults_to_ten():
    result = await TestDataServer(seed=5).call("generate_lead_data", {})

    assert _text(result).startswith("Generated 10 lead(s) in json format:")


@pytest.mark.asyncio
async def test_generate_test_scenarios():
    result = await TestDataServer(seed=5).call("generate_test_scenarios", {"testType": "IRC", "count": 2})

    header, body = _text(result).split("\n\n", 1)
    assert header == "Generated 2 test scenario(s) for IRC:"
    assert all(s["name"].startswith("Campaign Creation") for s in json.loads(body))


@pytest.mark.asyncio
async def test_bad_arguments_become_error_results():
    server = TestDataServer()

    result = await server.call("generate_campaign_data", {"count": 1, "type": "broadcast"})
    assert result.isError
    assert _text(result).startswith("Error executing generate_campaign_data:")

    result = await server.call("generate_user_data", {"count": -1})
    assert result.isError

    result = await server.call("generate_test_scenarios", {})
    assert "'testType' is required" in _text(result)


@pytest.mark.asyncio
async def test_unknown_tool_is_an_error_result():
    result = await TestDataServer().call("drop_database", {})

    assert result.isError
    assert _text(result) == "Error executing drop_database: Unknown tool: drop_database"


# ================================================================================
# Test analyzer
# ================================================================================

@pytest.fixture
def project(tmp_path):
    stats = tmp_path / "test-results" / "run-1"
    stats.mkdir(parents=True)
    (stats / "test-results.json").write_text(
        json.dumps({"stats": {"total": 4, "passed": 3, "failed": 1, "skipped": 0}}), encoding="utf-8"
    )
    (tmp_path / "test-results" / "test-results.json").write_text("{broken", encoding="utf-8")

    allure_dir = tmp_path / "allure-results"
    allure_dir.mkdir()
    for i, (status, suite) in enumerate([("passed", "IRC"), ("failed", "IRC"), ("passed", None)]):
        labels = [{"name": "suite", "value": suite}] if suite else []
        (allure_dir / f"{i}-result.json").write_text(
            json.dumps({"name": f"test {i}", "status": status, "start": 1000, "stop": 1000 + 100 * (i + 1),
                        "labels": labels}),
            encoding="utf-8",
        )
    return tmp_path


def test_analyzer_declares_its_tools():
    names = [t.name for t in TestAnalyzerServer().tools()]
    assert names == [
        "analyze_test_results",
        "analyze_flaky_tests",
        "performance_analysis",
        "coverage_analysis",
        "generate_test_report",
    ]


@pytest.mark.asyncio
async def test_summary_report_sums_stats_files(project):
    server = TestAnalyzerServer(project_root=project, allure_dir="allure-results")

    result = await server.call("analyze_test_results", {})

    assert _text(result) == (
        "Test Results Analysis (summary):\n\n"
        "Summary Report:\n"
        "Total Tests: 4\n"
        "Passed: 3 (75.00%)\n"
        "Failed: 1\n"
        "Skipped: 0"
    )


@pytest.mark.asyncio
async def test_detailed_report_groups_allure_results(project):
    server = TestAnalyzerServer(project_root=project, allure_dir="allure-results")

    result = await server.call("analyze_test_results", {"reportType": "detailed"})

    analysis = json.loads(_text(result).split("\n\n", 1)[1])
    details = analysis["details"]
    assert details["totalTests"] == 3
    assert details["byStatus"] == {"passed": ["test 0", "test 2"], "failed": ["test 1"]}
    assert details["bySuite"] == {"IRC": ["test 0", "test 1"], "unknown": ["test 2"]}
    assert details["avgDuration"] == 200


@pytest.mark.asyncio
async def test_missing_results_give_zero_summary(tmp_path):
    result = await TestAnalyzerServer(project_root=tmp_path).call("analyze_test_results", {})

    assert "Total Tests: 0\nPassed: 0 (0%)" in _text(result)


@pytest.mark.asyncio
async def test_flaky_tests_respect_threshold_and_suite():
    server = TestAnalyzerServer()

    text = _text(await server.call("analyze_flaky_tests", {}))
    assert text.startswith("Flaky Tests Analysis for all:\n\nThreshold: 20% failure rate\nFound 2 potentially flaky tests:")
    assert "- RBL User Login Verification: 25.0% failure rate (5/20 runs)\n  Common failures: timeout, element not found" in text

    text = _text(await server.call("analyze_flaky_tests", {"threshold": 0.28}))
    assert "Found 1 potentially flaky tests" in text

    text = _text(await server.call("analyze_flaky_tests", {"testSuite": "IRC"}))
    assert "Found 0 potentially flaky tests" in text


@pytest.mark.asyncio
async def test_performance_and_coverage_texts():
    server = TestAnalyzerServer()

    performance = _text(await server.call("performance_analysis", {"testSuite": "RBL"}))
    assert performance.startswith("Performance Analysis for RBL (duration):\n\nAverage execution time: 45000ms")
    assert "- RBL Complete User Flow: 120000ms" in performance

    coverage = _text(await server.call("coverage_analysis", {}))
    assert "Overall coverage: 78%" in coverage
    assert "- Reporting: 45% (9/20 scenarios)" in coverage


@pytest.mark.asyncio
async def test_generate_test_report_formats():
    server = TestAnalyzerServer()

    markdown = _text(await server.call("generate_test_report", {}))
    assert markdown.startswith("Generated Test Report (markdown):\n\n# Test Execution Report")

    report = json.loads(_text(await server.call("generate_test_report", {"format": "json"})).split("\n\n", 1)[1])
    assert report["summary"]["total"] == 156

    html = _text(await server.call("generate_test_report", {"format": "html", "includeScreenshots": False}))
    assert "<h1>Test Execution Report</h1>" in html
    assert "Screenshots" not in html

    result = await server.call("generate_test_report", {"format": "pdf"})
    assert result.isError
