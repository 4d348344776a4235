"""Plan-filtered catalog listings."""

from examprep.catalog.listing import list_exams, list_subjects, list_years

__all__ = ["list_exams", "list_subjects", "list_years"]
