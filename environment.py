"""
Monkey Runtime Environment
Mutable name -> object mappings chained to an optional enclosing environment
"""

from typing import Dict, List, Optional, Tuple


def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create a runtime environment"""
  return {
      'parent': parent,
      'bindings': dict(bindings) if bindings else {}
  }


def new_enclosed_env(parent: Dict) -> Dict:
  """Create a child environment whose lookups fall through to parent"""
  return make_runtime_env(parent=parent)


def env_set(env: Dict, name: str, value: Dict) -> Dict:
  """
  Bind name in this environment only and return the bound value.

  An outer binding with the same name is shadowed, never rebound.
  """
  env['bindings'][name] = value
  return value


def env_get(env: Dict, name: str) -> Tuple[Optional[Dict], bool]:
  """Look up a name in the environment chain, returning (value, found)"""
  current = env
  while current is not None:
    if name in current['bindings']:
      return current['bindings'][name], True
    current = current['parent']
  return None, False


def env_user_bindings(env: Dict) -> List[Tuple[str, Dict]]:
  """Bindings of this environment (not its parents) in definition order"""
  return list(env['bindings'].items())
