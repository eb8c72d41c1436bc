'''
# References between blocks

When the producer writes a block it records the address the data had in
its own memory, and every pointer field holds one of these addresses.
They are not addresses of anything in our process: they are only keys
to find the block that was pointed to.

The zero address is the null pointer.
'''
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..exceptions import CycleDetectedException


logger = logging.getLogger(__name__)


class AddressIndex(object):
    '''Maps the old address of every block (children included) to the block.

    When two blocks claim the same address the first one in file order wins
    and the others are recorded in "collisions".'''

    def __init__(self, blocks: Iterable["Block"]):
        self._blocks: Dict[int, "Block"] = {}
        self.collisions: List["Block"] = []

        for block in blocks:
            self._add(block)
            for child in block.children:
                self._add(child)

    def _add(self, block):
        address = block.old_address
        if address == 0:
            return

        if address in self._blocks:
            logger.warning('address 0x%x of %r already used by %r' % (address, block, self._blocks[address]))
            self.collisions.append(block)
            return

        self._blocks[address] = block

    def __len__(self):
        return len(self._blocks)

    def __contains__(self, address):
        return address in self._blocks

    def resolve(self, address: int) -> Optional["Block"]:
        if not address:
            return None

        return self._blocks.get(address)


class Navigator(object):
    '''Walks the structures built out of pointer fields.

    Each walk keeps the set of the visited addresses: a chain that
    comes back on itself raises CycleDetectedException instead of
    looping forever.'''

    def __init__(self, blend: "BlendFile"):
        self.blend = blend

    def walk(self, address: int, struct_name: str, next_field: str = '*next') -> Iterator["Block"]:
        '''Follow a linked list starting from the block at the given address.

        It stops at the null pointer or at an address without block.'''
        visited = set()

        block = self.blend.resolve(address)
        while block is not None:
            if block.old_address in visited:
                raise CycleDetectedException(block.old_address, chain=[next_field, struct_name])
            visited.add(block.old_address)

            yield block

            block = self.blend.dereference(block, struct_name, next_field)

    def walk_listbase(self, block: "Block", struct_name: str, field_name: str,
                      item_struct: str, next_field: str = '*next') -> Iterator["Block"]:
        '''Walk the list whose ListBase is the field of the block, like Collection.gobject.'''
        offset = self.blend.offset_of(struct_name, field_name) + self.blend.offset_of('ListBase', '*first')
        first = self.blend.read(block, offset, 'Q')

        return self.walk(first, item_struct, next_field=next_field)

    def walk_tree(self, root: "Block", children: Callable[["Block"], Iterable["Block"]]) -> Iterator[Tuple[int, "Block"]]:
        '''Depth first walk from the root, yielding (depth, block).

        children is called with each block and returns the blocks below it.
        A block reachable from more than one parent is yielded under each
        of them: only a block that is its own ancestor is a cycle.'''
        stack = [(0, root, frozenset())]

        while stack:
            depth, block, ancestors = stack.pop()

            if block.old_address:
                if block.old_address in ancestors:
                    raise CycleDetectedException(block.old_address)
                ancestors = ancestors | {block.old_address}

            yield depth, block

            # reversed so that the first child is visited first
            stack.extend((depth + 1, _, ancestors) for _ in reversed(list(children(block))))

    def parents(self, block: "Block", struct_name: str, parent_field: str = '*parent') -> Iterator["Block"]:
        '''The chain of the parents of the block, nearest first.'''
        visited = {block.old_address}

        parent = self.blend.dereference(block, struct_name, parent_field)
        while parent is not None:
            if parent.old_address in visited:
                raise CycleDetectedException(parent.old_address, chain=[parent_field, struct_name])
            visited.add(parent.old_address)

            yield parent

            parent = self.blend.dereference(parent, struct_name, parent_field)

    def find_referrers(self, code, struct_name: str, field_name: str, address: int) -> Iterator["Block"]:
        '''The top level blocks with the given code whose pointer field holds the address,
        e.g. the objects using a mesh as data.'''
        if not address:
            return

        for block in self.blend.blocks_by_code(code):
            if self.blend.read_pointer(block, struct_name, field_name) == address:
                yield block
