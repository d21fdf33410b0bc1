from __future__ import annotations

from pathlib import Path

import pytest

from lms_reconcile.core.common.types import SourceTable

DEMO_TALENT = """id,fullname,email,phone,role,last_login,Safety Course,Compliance Course
T1,John Doe,john.doe@company.com,1234567890,student,2023-10-01,Completed,In Progress
T2,Jane Smith,jane.s@gmail.com,0987654321,student,2023-09-15,Completed (achieved pass grade),Completed
T3,Robert Brown,robert.b@company.com,,admin,2023-11-01,,
T4,Ahmed Mohamed,ahmed.m@company.com,,student,2023-10-10,Completed,
"""

DEMO_PHARMACY = """id,fullname,email,phone,role,last_login,Safety Course,Leadership
P1,John Doe,john.doe88@gmail.com,,student,2023-10-20,Completed (achieved pass grade),
P2,Jane Smith,jane.smith@company.com,0987654321,teacher,2023-11-05,Completed,Completed (achieved pass grade)
P3,Bob Brown,bobby.brown@yahoo.com,,student,2023-01-01,,
P4,Ahmad Mohammed,ahmed.mohamed@personal.com,,student,2023-10-12,Completed,Completed
"""

DEMO_MASTER = """employee_code,fullname,official_email,personal_email,job_title
E001,John Doe,john.doe@company.com,john.doe88@gmail.com,Engineer
E002,Jane Smith,jane.smith@company.com,,Manager
E003,Robert Brown,robert.b@company.com,,Director
E004,Ahmed Mohamed,ahmed.m@company.com,,Staff
"""


@pytest.fixture
def demo_sources() -> tuple[SourceTable, SourceTable, SourceTable]:
    """سه منبع نمونه (Talent، Pharmacy، Master) به‌صورت متن CSV."""

    return (
        SourceTable(text=DEMO_TALENT, name="talent.csv"),
        SourceTable(text=DEMO_PHARMACY, name="pharmacy.csv"),
        SourceTable(text=DEMO_MASTER, name="master.csv"),
    )


@pytest.fixture
def demo_files(tmp_path: Path) -> dict[str, Path]:
    """نوشتن منابع نمونه روی دیسک برای تست‌های CLI و I/O."""

    paths = {
        "talent": tmp_path / "talent.csv",
        "pharmacy": tmp_path / "pharmacy.csv",
        "directory": tmp_path / "master.csv",
    }
    paths["talent"].write_text(DEMO_TALENT, encoding="utf-8")
    paths["pharmacy"].write_text(DEMO_PHARMACY, encoding="utf-8")
    paths["directory"].write_text(DEMO_MASTER, encoding="utf-8")
    return paths
