"""Runtime configuration and command execution helpers."""