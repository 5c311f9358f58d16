"""Specialist role table: base roles, keyword-triggered roles, integrator.

Keywords are matched as lowercase substrings of the joined requirement text,
so short keywords ("ui", "ai", "app") also fire inside longer words.
Bump ROLE_TABLE_VERSION whenever the table changes.
"""

ROLE_TABLE_VERSION = "1"

BASE_ROLES = ("Backend Developer", "Frontend Developer")

INTEGRATOR_ROLE = "Chief Technology Officer"

# (role, keywords) in the order roles are appended
KEYWORD_ROLES = (
    ("UI/UX Designer", ("ui", "user interface", "design", "user experience", "ux")),
    ("Database Architect", ("database", "data", "storage", "sql", "nosql")),
    ("Security Specialist", ("security", "authentication", "authorization", "encrypt", "privacy")),
    ("DevOps Engineer", (
        "scale", "performance", "load balancing", "cloud", "aws", "azure",
        "containerization", "docker", "kubernetes",
    )),
    ("Mobile Developer", ("mobile", "ios", "android", "app")),
    ("QA Engineer", ("test", "quality", "qa")),
    ("Machine Learning Engineer", (
        "ml", "machine learning", "ai", "artificial intelligence", "model",
        "prediction", "neural", "data science",
    )),
    ("Blockchain Developer", ("blockchain", "crypto", "smart contract", "web3")),
)

ROLE_FOCUS = {
    "Backend Developer": [
        "Server-side architecture and service boundaries",
        "API design and request handling",
        "Business logic organization",
        "Persistence access layer",
        "Background jobs and integrations",
        "Error handling and logging",
    ],
    "Frontend Developer": [
        "Client application architecture",
        "Component hierarchy and reuse",
        "State management",
        "Routing and navigation",
        "API integration and data fetching",
        "Build tooling and asset pipeline",
    ],
    "UI/UX Designer": [
        "User flows and information architecture",
        "Design system and reusable UI components",
        "Accessibility",
        "Responsive layouts",
        "Styling structure and theming",
    ],
    "Database Architect": [
        "Data model and entity relationships",
        "Schema migrations",
        "Indexing and query patterns",
        "Transactions and consistency",
        "Backup and recovery",
    ],
    "Security Specialist": [
        "Authentication and session management",
        "Authorization and access control",
        "Input validation and attack prevention",
        "Secret management and encryption",
        "Security logging and auditing",
    ],
    "DevOps Engineer": [
        "Containerization and deployment layout",
        "CI/CD pipeline",
        "Environment configuration",
        "Monitoring and alerting",
        "Scaling strategy",
    ],
    "Mobile Developer": [
        "Mobile app architecture (native, hybrid or cross-platform)",
        "Screen navigation",
        "Offline support and sync",
        "Native feature integration",
        "Push notifications",
    ],
    "QA Engineer": [
        "Test strategy and layout",
        "Unit and integration test setup",
        "End-to-end tests",
        "Fixtures, mocks and test data",
        "Continuous testing",
    ],
    "Machine Learning Engineer": [
        "Model architecture and training workflow",
        "Data preprocessing and feature pipeline",
        "Model versioning and experiment tracking",
        "Inference serving",
        "Model monitoring",
    ],
    "Blockchain Developer": [
        "Smart contract layout",
        "Wallet connectivity",
        "Transaction management",
        "On-chain and off-chain data",
        "Contract testing",
    ],
}
