# hostspec

Building blocks for checking the state of a host. Each probe wraps one kind
of system resource and answers questions about it. The resources are files,
packages, services, users, groups, listening ports, processes, mounts,
network interfaces, kernel parameters, DNS names, TCP/UDP addresses, HTTP
endpoints and shell commands. Spec and variable files can be JSON or YAML.

## Installation

```
pip install .
```

To run the tests, install the test extra:

```
pip install ".[test]"
pytest
```

## Configuration

Build a `Config` with `new_config` and option functions:

```python
from hostspec.util.config import new_config, with_spec_file, with_vars_string

config = new_config(
    with_spec_file("spec.yaml"),
    with_vars_string('{"hello": "world"}'),
)
print(config.vars_inline)
```

## Probing the host

A `System` works out which package manager and service manager the host
uses. Its probes take a name, the system and a config:

```python
from hostspec.system.system import System
from hostspec.system.file import File
from hostspec.system.port import Port
from hostspec.util.config import new_config

config = new_config()
system = System("")

passwd = File("/etc/passwd", system, config)
print(passwd.exists(), passwd.mode(), passwd.owner())

ssh = Port("tcp:22", system, config)
print(ssh.listening(), ssh.ip())
```

Other probes work the same way, for example `hostspec.system.dns.DNS`,
`hostspec.system.http.HTTP`, `hostspec.system.user.User` and
`hostspec.system.service.ServiceSystemd`.

## Variables

`hostspec.vars.load_vars(vars_file, vars_inline)` reads template variables
from a file and an inline string. Each one can be JSON or YAML, and the
format is detected from the content. Inline values override values from the
file.