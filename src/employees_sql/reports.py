"""Report queries against the employees sample schema."""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .database.models import QueryDescriptor

EMPLOYEES_IN_DEPARTMENT_SQL = """
SELECT count(*) AS Total
FROM employees emp
INNER JOIN dept_emp dep_rel ON emp.emp_no = dep_rel.emp_no
INNER JOIN departments dep ON dep_rel.dept_no = dep.dept_no
WHERE dep_rel.dept_no = ?
"""

EMPLOYEES_BY_DEPARTMENT_SQL = """
SELECT dep.dept_name, count(*) AS Total
FROM employees emp
INNER JOIN dept_emp dep_rel ON emp.emp_no = dep_rel.emp_no
INNER JOIN departments dep ON dep_rel.dept_no = dep.dept_no
GROUP BY dep.dept_name
"""

AVERAGE_SALARY_BY_DEPARTMENT_SQL = """
SELECT dep.dept_name, FORMAT(avg(sal.salary), 2) AS average_salary
FROM employees emp
INNER JOIN dept_emp dep_rel ON emp.emp_no = dep_rel.emp_no
INNER JOIN departments dep ON dep_rel.dept_no = dep.dept_no
INNER JOIN salaries sal ON emp.emp_no = sal.emp_no
GROUP BY dep.dept_name
"""

AVERAGE_SALARY_BY_DEPARTMENT_AND_GENDER_SQL = """
SELECT dep.dept_name, FORMAT(avg(sal.salary), 2) AS average_salary, emp.gender
FROM employees emp
INNER JOIN dept_emp dep_rel ON emp.emp_no = dep_rel.emp_no
INNER JOIN departments dep ON dep_rel.dept_no = dep.dept_no
INNER JOIN salaries sal ON emp.emp_no = sal.emp_no
GROUP BY dep.dept_name, emp.gender
"""

ALL_EMPLOYEES_SQL = """
SELECT first_name, last_name
FROM employees
"""


@dataclass(frozen=True)
class Report:
    """A named query plus the line used to log each of its rows."""

    name: str
    title: str
    descriptor: QueryDescriptor
    line_template: str

    def format_row(self, row: Mapping[str, Optional[str]]) -> str:
        """Render one row with the report's line template.

        Columns are looked up through the row, so a template naming a
        column the query does not return raises MissingColumnError.
        """
        return self.line_template.format_map(_RowFields(row))


class _RowFields(dict):
    def __init__(self, row: Mapping[str, Optional[str]]):
        super().__init__()
        self._row = row

    def __missing__(self, key: str) -> str:
        value = self._row[key]
        return "" if value is None else value


def employees_in_department(dept_no: str) -> Report:
    return Report(
        name=f"employees-in-{dept_no}",
        title=f"Employees of department {dept_no}",
        descriptor=QueryDescriptor.of(EMPLOYEES_IN_DEPARTMENT_SQL, dept_no),
        line_template="Employees of department " + dept_no.replace("{", "{{").replace("}", "}}") + ": {Total}",
    )


def employees_by_department() -> Report:
    return Report(
        name="employees-by-department",
        title="Employees by department",
        descriptor=QueryDescriptor(EMPLOYEES_BY_DEPARTMENT_SQL),
        line_template="Department: {dept_name}, Employees: {Total}",
    )


def average_salary_by_department() -> Report:
    return Report(
        name="average-salary-by-department",
        title="Average salary by department",
        descriptor=QueryDescriptor(AVERAGE_SALARY_BY_DEPARTMENT_SQL),
        line_template="Department: {dept_name}, Average salary: {average_salary}",
    )


def average_salary_by_department_and_gender() -> Report:
    return Report(
        name="average-salary-by-department-and-gender",
        title="Average salary by department and gender",
        descriptor=QueryDescriptor(AVERAGE_SALARY_BY_DEPARTMENT_AND_GENDER_SQL),
        line_template="Department: {dept_name}, Average salary: {average_salary}, Gender: {gender}",
    )


def all_employees(limit: Optional[int] = None) -> Report:
    if limit is None:
        descriptor = QueryDescriptor(ALL_EMPLOYEES_SQL)
    else:
        descriptor = QueryDescriptor.of(ALL_EMPLOYEES_SQL + "LIMIT ?\n", max(int(limit), 0))
    return Report(
        name="all-employees",
        title="All employees",
        descriptor=descriptor,
        line_template="Employee: {first_name} {last_name}",
    )


def default_reports(departments: Iterable[str] = ("d001", "d002")) -> List[Report]:
    """The standard run: per-department counts followed by the summaries."""
    reports = [employees_in_department(dept_no) for dept_no in departments]
    reports.extend([
        employees_by_department(),
        average_salary_by_department(),
        average_salary_by_department_and_gender(),
    ])
    return reports
