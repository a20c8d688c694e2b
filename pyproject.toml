[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fitcoach"
version = "0.1.0"
description = "Storage, security helpers and Flask views for a trainer and trainee coaching service: profiles, coaching requests, chat storage, progress reports and nutrition totals."
requires-python = ">=3.10"
keywords = ["fitness", "coaching", "trainer", "rest-api", "flask", "jwt", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "flask>=2.3",
    "bcrypt>=4.0",
    "pyjwt>=2.8",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["fitcoach"]

[tool.hatch.build.targets.sdist]
include = ["fitcoach", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
