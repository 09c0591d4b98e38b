"""kubectl plugin that finds Pods by name and reports their IPs and nodes."""
