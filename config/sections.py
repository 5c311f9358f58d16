"""Default chapter sections for the implementation book.

Used when an outline chapter arrives without sections. The first entry in
TITLE_SECTIONS whose keyword appears in the lowercased chapter title wins.
"""

SECTION_TABLE_VERSION = "1"

DEFAULT_SECTIONS = (
    "Overview and Purpose",
    "Architecture and Design",
    "Dependencies and Requirements",
    "Implementation Steps",
    "Configuration Details",
    "Integration Points",
    "Testing Approach",
    "Error Handling",
    "Performance Considerations",
    "Security Measures",
)

TITLE_SECTIONS = (
    ("database", (
        "Database Schema Design",
        "Entity Relationships",
        "Indexing Strategy",
        "Query Optimization",
        "Migration Approach",
        "Data Access Patterns",
        "Transaction Management",
        "Connection Pooling",
        "Backup and Recovery",
        "Data Security",
    )),
    ("frontend", (
        "Component Architecture",
        "State Management",
        "Routing and Navigation",
        "UI Component Design",
        "API Integration",
        "Form Handling",
        "Error and Loading States",
        "Responsive Design",
        "Testing and Validation",
        "Performance Optimization",
    )),
    ("api", (
        "API Design Principles",
        "Endpoint Definitions",
        "Request/Response Formats",
        "Authentication and Authorization",
        "Error Handling",
        "Rate Limiting",
        "Versioning Strategy",
        "Documentation",
        "Testing Strategy",
        "Performance Considerations",
    )),
    ("security", (
        "Security Architecture",
        "Authentication Implementation",
        "Authorization and Access Control",
        "Data Encryption",
        "Input Validation",
        "Attack Prevention Strategies",
        "Secure Communication",
        "Secret Management",
        "Security Logging and Monitoring",
        "Security Testing",
    )),
)


def default_sections(chapter_title):
    """Return the default section list for a chapter title."""
    title = chapter_title.lower()
    for keyword, sections in TITLE_SECTIONS:
        if keyword in title:
            return list(sections)
    return list(DEFAULT_SECTIONS)
