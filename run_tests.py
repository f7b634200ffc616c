#!/usr/bin/env python3
# ================================================================================
# Test Runner Script
# ================================================================================
#
# Entry point for executing the CRM suites.
#
# Features:
#   - Run one suite (RBL, IRC, Sanity, SanityAgent) against its environment
#   - Run the offline unit tests
#   - Generate Allure reports
#   - CI/CD pipeline support (exit code of pytest)
#
# Usage:
#   python run_tests.py --suite irc --env qc2
#   python run_tests.py --suite sanity --tags P0 --no-headless
#   python run_tests.py --suite unit --no-allure
#
# ================================================================================

import argparse
import os
import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger


# Configure logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    level="INFO"
)


# CLI suite -> (SUITE env value, pytest marker)
SUITES: Dict[str, tuple] = {
    "rbl": ("RBL", "rbl"),
    "irc": ("IRC", "irc"),
    "sanity": ("Sanity", "sanity"),
    "sanity_agent": ("SanityAgent", "sanity_agent"),
}


class TestRunner:
    """
    Orchestrates one test run.

    This class handles:
    - Suite selection (SUITE / ENVIRONMENT env vars for the UI suites)
    - pytest command construction
    - Report generation
    """

    __test__ = False

    def __init__(
        self,
        suite: str = "all",
        tags: Optional[List[str]] = None,
        environment: Optional[str] = None,
        parallel: int = 1,
        browser: str = "chromium",
        headless: bool = True,
        allure_report: bool = True,
        verbose: bool = False
    ):
        """
        Initialize test runner.

        Args:
            suite: rbl, irc, sanity, sanity_agent, unit or all
            tags: List of pytest markers to filter tests
            environment: Environment name (qc2 ... qc7, uat361, i361) or base URL
            parallel: Number of parallel workers (pytest-xdist)
            browser: Browser for UI tests - "chromium", "firefox", "webkit"
            headless: Run browser in headless mode
            allure_report: Generate Allure report
            verbose: Enable verbose output
        """
        self.suite = suite
        self.tags = tags or []
        self.environment = environment
        self.parallel = parallel
        self.browser = browser
        self.headless = headless
        self.allure_report = allure_report
        self.verbose = verbose

        # Paths
        self.root_dir = Path(__file__).parent
        self.reports_dir = self.root_dir / "reports"
        self.allure_results = self.reports_dir / "allure-results"
        self.allure_report_dir = self.reports_dir / "allure-report"

    @property
    def runs_ui(self) -> bool:
        return self.suite != "unit"

    def run(self) -> int:
        """
        Execute the test run.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        logger.info("=" * 60)
        logger.info("Starting Test Execution")
        logger.info("=" * 60)
        logger.info(f"Suite: {self.suite}")
        logger.info(f"Tags: {self.tags or 'All'}")
        logger.info(f"Parallel Workers: {self.parallel}")
        if self.runs_ui:
            logger.info(f"Environment: {self.environment or 'suite default'}")
            logger.info(f"Browser: {self.browser}")
            logger.info(f"Headless: {self.headless}")
        logger.info("=" * 60)

        self._prepare_environment()

        cmd = self._build_pytest_command()
        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(self.root_dir), env=self._build_env())
            exit_code = result.returncode
        except OSError as e:
            logger.error(f"Test execution failed: {e}")
            exit_code = 1

        if self.allure_report:
            self._generate_allure_report()

        self._print_summary(exit_code)
        return exit_code

    def _prepare_environment(self) -> None:
        """Create report directories."""
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        self.allure_results.mkdir(parents=True, exist_ok=True)
        logger.debug("Environment prepared")

    def _build_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self.suite in SUITES:
            env["SUITE"] = SUITES[self.suite][0]
        if self.runs_ui:
            env["UI_LIVE_TESTS"] = "1"
            env["BROWSER"] = self.browser
            env["HEADLESS"] = "true" if self.headless else "false"
        if self.environment:
            env["ENVIRONMENT"] = self.environment
        return env

    def _build_pytest_command(self) -> List[str]:
        """Build the pytest command with all options."""
        cmd = [sys.executable, "-m", "pytest"]

        if self.suite == "unit":
            cmd.append("testsuites/unit")
        elif self.suite == "all":
            cmd.append("testsuites/")
        else:
            cmd.append("testsuites/ui_testing/tests")

        markers = []
        if self.suite in SUITES:
            markers.append(SUITES[self.suite][1])
        if self.tags:
            markers.append("(" + " or ".join(self.tags) + ")")
        if markers:
            cmd.extend(["-m", " and ".join(markers)])

        if self.parallel > 1:
            cmd.extend(["-n", str(self.parallel)])

        if self.allure_report:
            cmd.extend(["--alluredir", str(self.allure_results)])

        cmd.append("-v" if self.verbose else "-q")
        return cmd

    def _generate_allure_report(self) -> None:
        """Generate Allure HTML report."""
        logger.info("Generating Allure report...")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_path = self.reports_dir / f"allure-report-{timestamp}"

        try:
            subprocess.run([
                "allure", "generate",
                str(self.allure_results),
                "-o", str(report_path),
                "--clean"
            ], check=True)
        except FileNotFoundError:
            logger.warning("Allure CLI not found. Please install Allure to generate reports.")
            return
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to generate Allure report: {e}")
            return

        # Create/update latest symlink
        latest_link = self.allure_report_dir
        if latest_link.is_symlink():
            latest_link.unlink()
        elif latest_link.exists():
            shutil.rmtree(latest_link)
        latest_link.symlink_to(report_path.name)

        logger.info(f"Report generated: {report_path}")
        logger.info(f"Latest report: {self.allure_report_dir}")

    def _print_summary(self, exit_code: int) -> None:
        """Print test execution summary."""
        logger.info("=" * 60)
        if exit_code == 0:
            logger.info("✅ TEST EXECUTION COMPLETED SUCCESSFULLY")
        else:
            logger.error(f"❌ TEST EXECUTION FAILED (exit code: {exit_code})")

        if self.allure_report:
            logger.info(f"📊 Report available at: {self.allure_report_dir}")

        logger.info("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Call-Center CRM Automation Test Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the IRC suite on its default environment
  python run_tests.py --suite irc

  # Run P0 Sanity tests on qc7 with a visible browser
  python run_tests.py --suite sanity --env qc7 --tags P0 --no-headless

  # Run the offline unit tests only
  python run_tests.py --suite unit --no-allure
        """
    )

    parser.add_argument(
        "--suite",
        choices=[*SUITES, "unit", "all"],
        default="all",
        help="Test suite to run (default: all)"
    )

    parser.add_argument(
        "--tags",
        nargs="+",
        default=[],
        help="Pytest markers to filter tests (e.g., P0 import_mapping)"
    )

    parser.add_argument(
        "--parallel", "-n",
        type=int,
        default=1,
        help="Number of parallel workers (default: 1)"
    )

    parser.add_argument(
        "--env",
        dest="environment",
        default=None,
        help="Environment name or base URL (default: suite default)"
    )

    parser.add_argument(
        "--browser",
        choices=["chromium", "firefox", "webkit"],
        default="chromium",
        help="Browser for UI tests (default: chromium)"
    )

    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Run browser in headed mode (visible)"
    )

    parser.add_argument(
        "--no-allure",
        action="store_true",
        help="Disable Allure report generation"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    runner = TestRunner(
        suite=args.suite,
        tags=args.tags,
        environment=args.environment,
        parallel=args.parallel,
        browser=args.browser,
        headless=not args.no_headless,
        allure_report=not args.no_allure,
        verbose=args.verbose
    )

    sys.exit(runner.run())


if __name__ == "__main__":
    main()
