from __future__ import annotations

from makeable.agent.generator import Generator, select_generator
from makeable.config import get_settings
from makeable.services.projects import ProjectStore


def get_project_store() -> ProjectStore:
    return ProjectStore(get_settings().projects_dir)


def get_generator() -> Generator:
    return select_generator(get_settings())
