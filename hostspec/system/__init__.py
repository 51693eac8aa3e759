"""Resource probes for files, packages, services, network and more."""