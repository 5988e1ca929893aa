"""Preview rendering: dispatch by file kind, pager pipelines and image backends."""
