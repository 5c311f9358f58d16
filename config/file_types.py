"""File extension languages and per-file-type implementation guidance."""

EXTENSION_LANGUAGES = {
    ".py": "python", ".rb": "ruby", ".php": "php", ".java": "java",
    ".kt": "kotlin", ".swift": "swift", ".go": "go", ".rs": "rust",
    ".c": "c", ".h": "c", ".cpp": "cpp", ".cs": "csharp",
    ".js": "javascript", ".jsx": "javascript", ".mjs": "javascript",
    ".ts": "typescript", ".tsx": "typescript", ".vue": "vue", ".dart": "dart",
    ".html": "html", ".css": "css", ".scss": "scss", ".less": "less",
    ".json": "json", ".yml": "yaml", ".yaml": "yaml", ".toml": "toml",
    ".ini": "ini", ".cfg": "ini", ".conf": "conf", ".xml": "xml",
    ".svg": "svg", ".md": "markdown", ".txt": "text", ".sql": "sql",
    ".sh": "bash", ".bash": "bash", ".ps1": "powershell", ".tf": "terraform",
    ".sol": "solidity", ".scala": "scala", ".lua": "lua", ".r": "r",
    ".ex": "elixir", ".exs": "elixir", ".gradle": "gradle", ".groovy": "groovy",
}

# Dotfiles and extensionless files keyed by full lowercase name
NAME_LANGUAGES = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
    ".env": "text",
    ".env.example": "text",
    ".gitignore": "text",
    ".dockerignore": "text",
}

# (path keywords, guidance); first match wins, matched against the lowercase path
PATH_GUIDANCE = (
    (("component", "/ui/", "view", "page", "screen"), (
        "This is a UI file. Include every import, complete props/state "
        "definitions, full rendering markup, event handlers, loading and "
        "error states, and styling hooks."
    )),
    (("model", "schema", "entity"), (
        "This is a data model file. Include the complete definition with all "
        "fields and types, validation rules, relationships, persistence "
        "mapping, and serialization helpers."
    )),
    (("controller", "handler", "route", "endpoint"), (
        "This is a request handling file. Include every route with its "
        "method, parameter validation, authorization checks, business "
        "logic calls, error responses and response formatting."
    )),
    (("service", "provider", "repository"), (
        "This is a service file. Include the public interface with complete "
        "implementations, helpers, integration with its dependencies, error "
        "handling and transaction boundaries."
    )),
    (("test", "spec"), (
        "This is a test file. Cover the public behaviour of the code under "
        "test, including edge cases and failure paths, with fixtures and "
        "mocks where needed."
    )),
    (("config", "settings", ".env"), (
        "This is a configuration file. Include every setting the project "
        "needs, with sensible defaults and environment overrides."
    )),
)

DEFAULT_GUIDANCE = (
    "Implement the file completely: every import, definition and piece of "
    "logic it needs, with error handling for its failure modes."
)
