CLIENT = "CLIENTE"
TRAINER = "ENTRENADOR"
ADMIN = "ADMIN"

KNOWN_ROLES = {CLIENT, TRAINER, ADMIN}


def parse_role_names(header_value) -> set:
    """'cliente, ADMIN ,foo' -> {'CLIENTE', 'ADMIN'}; unknown names are dropped."""
    names = set()
    for part in (header_value or "").split(","):
        name = part.strip().upper()
        if name in KNOWN_ROLES:
            names.add(name)
    return names
