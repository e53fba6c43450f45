[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "imposteur"
version = "1.0.0"
description = "Multiplayer word game server and terminal client where players unmask the impostor holding a different secret word"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "impostor", "word game", "multiplayer", "tcp", "terminal"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
imposteur-server = "imposteur.server:main"
imposteur-client = "imposteur.client_ui:main"

[tool.hatch.build.targets.wheel]
packages = ["imposteur"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
