"""Setup document templates: loading, versioning, merging and upgrades."""

from codesyncer.templates.base import DocTemplate, Section, TemplateStatus, UpgradeResult
from codesyncer.templates.loader import (
    find_placeholders,
    get_all_templates,
    get_package_templates_path,
    load_template,
    render_template,
    templates_for_scope,
)
from codesyncer.templates.merge import extract_sections, merge_sections, supports_merge
from codesyncer.templates.version import (
    TEMPLATE_FILE_MAP,
    check_template_version,
    compare_versions,
    extract_template_version,
    get_outdated_templates,
    scan_template_versions,
)

__all__ = [
    "DocTemplate",
    "Section",
    "TEMPLATE_FILE_MAP",
    "TemplateStatus",
    "UpgradeResult",
    "check_template_version",
    "compare_versions",
    "extract_sections",
    "extract_template_version",
    "find_placeholders",
    "get_all_templates",
    "get_outdated_templates",
    "get_package_templates_path",
    "load_template",
    "merge_sections",
    "render_template",
    "scan_template_versions",
    "supports_merge",
    "templates_for_scope",
]
