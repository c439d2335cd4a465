"""K8s constants shared by the stack loader, backends and CLI."""

# Label put on every resource created or patched by a stack apply; its value
# is the stack name. Prune and delete discover stack resources through it.
DEFAULT_STACK_LABEL = "kubestack.io/stack"

# File suffixes loaded from a stack directory
STACK_FILE_SUFFIXES = (".yaml", ".yml", ".json")

# Fields filled in by the API server. Ignored when diffing live resources so
# that applying an unchanged stack produces no patch.
SERVER_MANAGED_FIELDS = (
    ("status",),
    ("metadata", "uid"),
    ("metadata", "resourceVersion"),
    ("metadata", "creationTimestamp"),
    ("metadata", "generation"),
    ("metadata", "managedFields"),
    ("metadata", "selfLink"),
)
