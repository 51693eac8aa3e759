[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hostspec"
version = "0.1.0"
description = "Probe the state of a host: files, packages, services, users, ports, DNS, HTTP and more"
requires-python = ">=3.10"
keywords = ["server", "validation", "health-check", "infrastructure", "testing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
    "dnspython",
    "psutil",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hostspec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
