"""helptree - CLI help-text introspection

Philosophy:
- Help text is the contract: every node comes from a real `--help` run
- Probing failures are data, not exceptions
- One tree shape for every consumer (diffs, keywords, renderers)

The helptree crawler invokes an external program's `--help` at every
nesting level, parses the free-form output into a CLI Structure Tree,
and compares stored trees across versions.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
