"""Keyword-driven specialist role selection."""

from config import roles as default_table


def select_roles(requirements, table=default_table):
    """Pick the specialist roles a requirement set calls for.

    Base roles come first, then every keyword-triggered role in table order
    whose keywords appear in the requirement text, then the integrator.
    Pure and deterministic: the same requirements always give the same list.
    """
    text = "\n".join(requirements).lower()

    roles = list(table.BASE_ROLES)
    for role, keywords in table.KEYWORD_ROLES:
        if role in roles:
            continue
        if any(keyword in text for keyword in keywords):
            roles.append(role)

    roles.append(table.INTEGRATOR_ROLE)
    return roles


def matched_keywords(requirements, table=default_table):
    """Return {role: [keywords that fired]} for the triggered roles."""
    text = "\n".join(requirements).lower()
    matches = {}
    for role, keywords in table.KEYWORD_ROLES:
        hits = [k for k in keywords if k in text]
        if hits:
            matches[role] = hits
    return matches


def vision_roles(roles, table=default_table):
    """Roles that get their own vision call: everything but the integrator."""
    return [r for r in roles if r != table.INTEGRATOR_ROLE]


def role_focus(role, table=default_table):
    return table.ROLE_FOCUS.get(role, [])
