from __future__ import annotations

from typing import Any, Dict, List


def collect_stats(users: List[Dict[str, Any]], projects: List[Dict[str, Any]]) -> Dict[str, Any]:
    per_user: Dict[str, int] = {}
    for project in projects:
        owner = str(project.get("userId"))
        per_user[owner] = per_user.get(owner, 0) + 1
    return {
        "totalUsers": len(users),
        "totalStudents": sum(1 for user in users if user["role"] == "student"),
        "totalAdmins": sum(1 for user in users if user["role"] == "admin"),
        "totalProjects": len(projects),
        "projectsPerUser": per_user,
    }


def describe_owner(project: Dict[str, Any], users_by_id: Dict[str, Dict[str, Any]]) -> Dict[str, str]:
    owner = users_by_id.get(str(project.get("userId")))
    return {
        "userName": owner["name"] if owner else "Unknown",
        "userEmail": owner["email"] if owner else "Unknown",
    }
