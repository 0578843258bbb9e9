from typing import Callable, Dict, Hashable, Iterable, List, TypeVar

T = TypeVar('T')
K = TypeVar('K', bound=Hashable)
V = TypeVar('V')

def group_by(items: Iterable[T], key: Callable[[T], K],
             value: Callable[[T], V] = None) -> Dict[K, List[V]]:
    """
    Group items by a key function.
    
    Keys appear in first-seen order and each group keeps the order in which
    its items were encountered.
    
    Args:
        items: Items to group
        key: Function extracting the grouping key
        value: Optional function mapping each item before it is stored
        
    Returns:
        Dict mapping each key to the list of its (mapped) items
    """
    groups: Dict[K, List[V]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(value(item) if value else item)
    return groups
