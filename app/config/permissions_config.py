"""
Permissions and Roles Configuration
This config defines the permission matrix for every module and the two user roles.
Used by the authorization gate and exposed through /auth/me for the frontend.
"""

REFUGEE = "refugee"
VOLUNTEER = "volunteer"
ROLES = (REFUGEE, VOLUNTEER)

# Define modules and their actions
MODULES = {
    "camps": {
        "resource": "camps",
        "actions": ["create", "read", "update", "delete"],
        "description": "Shelter camp management"
    },
    "selections": {
        "resource": "selections",
        "actions": ["create", "read", "cancel"],
        "description": "Camp bed selection by users"
    },
    "assignments": {
        "resource": "assignments",
        "actions": ["create", "read"],
        "description": "Volunteer assignment history"
    }
}

# Role definitions: resource -> allowed actions
ROLE_TYPES = {
    REFUGEE: {
        "permissions": {
            "camps": ["read"],
            "selections": ["create", "read", "cancel"],
        },
        "description": "Person looking for shelter; may only manage their own camp selection"
    },
    VOLUNTEER: {
        "permissions": {
            "camps": ["create", "read", "update", "delete"],
            "selections": ["create", "read", "cancel"],
            "assignments": ["create", "read"],
        },
        "description": "Relief worker; manages camps and logs assignment history"
    }
}

# Additional descriptions for specific permissions
MODULE_SPECIFIC_PERMISSIONS = {
    "camps": {
        "update": "Edit camp details and bed capacity"
    },
    "selections": {
        "create": "Reserve a bed in a camp",
        "cancel": "Release the currently reserved bed"
    },
    "assignments": {
        "create": "Record that a volunteer worked a camp"
    }
}


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the permissions granted to each role
    Format: {
        "permissions": [
            {"name": "camps:create", "resource": "camps", "action": "create", "description": "..."},
            ...
        ],
        "roles": {
            "volunteer": ["assignments:create", "camps:create", ...],
            ...
        }
    }
    """
    permissions = []
    roles = {}

    for module_name, module_config in MODULES.items():
        resource = module_config["resource"]

        for action in module_config["actions"]:
            permission_name = f"{resource}:{action}"
            description = f"{action.capitalize()} {resource}"

            if module_name in MODULE_SPECIFIC_PERMISSIONS and action in MODULE_SPECIFIC_PERMISSIONS[module_name]:
                description = MODULE_SPECIFIC_PERMISSIONS[module_name][action]

            permissions.append({
                "name": permission_name,
                "resource": resource,
                "action": action,
                "description": description
            })

    for role_name, role_config in ROLE_TYPES.items():
        role_permissions = []
        for resource, actions in role_config["permissions"].items():
            for action in actions:
                if action in MODULES[resource]["actions"]:
                    role_permissions.append(f"{resource}:{action}")
        roles[role_name] = sorted(role_permissions)

    return {
        "permissions": permissions,
        "roles": roles
    }


PERMISSION_MATRIX = get_permission_matrix()
ROLE_PERMISSIONS = {role: frozenset(perms) for role, perms in PERMISSION_MATRIX["roles"].items()}
