import json
import os
from typing import List, Optional
from datetime import datetime
from models import TestRun, TestCase, PageData, RunStatus
import uuid


class TestRunStorage:
    """File-based storage for test-run documents"""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = data_dir
        self.runs_dir = os.path.join(data_dir, "test_runs")
        self._ensure_directories()

    def _ensure_directories(self):
        """Ensure all necessary directories exist"""
        os.makedirs(self.runs_dir, exist_ok=True)

    def _get_run_file(self, run_id: str) -> str:
        """Get test run file path"""
        safe_id = os.path.basename(run_id)
        return os.path.join(self.runs_dir, f"{safe_id}.json")

    # Test run operations

    def create_run(
        self,
        url: str,
        page_data: Optional[PageData] = None,
        tests: Optional[List[TestCase]] = None,
        confidence: Optional[float] = None
    ) -> TestRun:
        """Create a new test run awaiting review"""
        run = TestRun(
            id=str(uuid.uuid4()),
            url=url,
            status=RunStatus.PENDING_REVIEW,
            page_data=page_data or PageData(),
            tests=tests or [],
            confidence=confidence
        )
        self.save_run(run)
        return run

    def save_run(self, run: TestRun):
        """Save test run to file"""
        file_path = self._get_run_file(run.id)
        with open(file_path, 'w') as f:
            json.dump(run.to_record(), f, indent=2, default=str)

    def get_run(self, run_id: str) -> Optional[TestRun]:
        """Get test run by ID"""
        file_path = self._get_run_file(run_id)
        if not os.path.exists(file_path):
            return None

        with open(file_path, 'r') as f:
            data = json.load(f)
            return TestRun(**data)

    def get_all_runs(self) -> List[TestRun]:
        """All test runs, newest first"""
        runs = []
        for filename in os.listdir(self.runs_dir):
            if filename.endswith('.json'):
                run = self.get_run(filename[:-5])
                if run:
                    runs.append(run)
        return sorted(runs, key=lambda r: r.created_at, reverse=True)

    def update_run(self, run_id: str, **updates) -> Optional[TestRun]:
        """Apply field updates to a stored run"""
        run = self.get_run(run_id)
        if not run:
            return None

        updated = run.model_copy(update=updates)
        self.save_run(updated)
        return updated

    def mark_completed(self, run_id: str, tests: List[dict]) -> Optional[TestRun]:
        """Store execution results and the final run status"""
        failed = any(t.get("status") == "fail" for t in tests)
        return self.update_run(
            run_id,
            tests=[TestCase(**t) for t in tests],
            status=RunStatus.COMPLETED_WITH_FAILURES if failed else RunStatus.COMPLETED,
            completed_at=datetime.now(),
            error=None
        )

    def delete_run(self, run_id: str) -> bool:
        """Delete test run"""
        file_path = self._get_run_file(run_id)
        if os.path.exists(file_path):
            os.remove(file_path)
            return True
        return False
