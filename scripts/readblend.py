#!/usr/bin/env python3
'''
Dump the content of a .blend file, something like

 $ readblend.py untitled.blend            # header, blocks, scenes and armatures
 $ readblend.py untitled.blend Object Bone  # definition of the structs
'''
import sys
import os
import logging

from blendstruct.blend import load
from blendstruct.blend.enum import BlendBlockCode, BlendObjectType
from blendstruct.exceptions import BlendStructException


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print('usage: %s <blend file> [struct name...]' % progname)
    sys.exit(1)


def dump_header(blend):
    print(f'''Blend Header:
  Version:                           {blend.version}
  Pointer size:                      {blend.header.pointer_size.value}
  Endianness:                        {blend.header.endianness.value}
  Blocks:                            {len(blend)}
  Structs:                           {len(blend.catalog)}''')


def dump_blocks(blend):
    print('''Blocks:
  [Nr] Code SDNA  Struct                         Count   Size      Offset     Children''')
    for block in blend:
        code = block.code.rstrip(b'\x00').decode('latin1')
        name = blend.struct_name(block) or '?'
        print(f'''  [{block.index: >3d}] {code:<4} {block.sdna_index:<5d} {name:<30} {block.count:<7d} {block.size:<9d} 0x{block.offset:08x} {len(block.children)}''')


def dump_structs(blend, names):
    for name in names:
        if name not in blend.catalog:
            print(f'struct {name} not found')
            continue

        print(blend.catalog.format_struct(name))


def collection_children(blend, collection):
    '''The collections below the given one, through the CollectionChild list'''
    for child in blend.navigator.walk_listbase(collection, 'Collection', 'children', 'CollectionChild'):
        sub = blend.dereference(child, 'CollectionChild', '*collection')
        if sub is not None:
            yield sub


def dump_collections(blend, master):
    for depth, collection in blend.navigator.walk_tree(master, lambda _: collection_children(blend, _)):
        indent = '  ' * (depth + 1)
        print(f'{indent}Collection: {blend.id_name(collection)}')

        for item in blend.navigator.walk_listbase(collection, 'Collection', 'gobject', 'CollectionObject'):
            ob = blend.dereference(item, 'CollectionObject', '*ob')
            if ob is not None:
                print(f'{indent}  Object: {blend.id_name(ob)}')


def dump_scenes(blend):
    for scene in blend.blocks_by_code(BlendBlockCode.SC):
        print(f'Scene: {blend.id_name(scene)}')

        render = blend.offset_of('Scene', 'r')
        start = blend.read(scene, render + blend.offset_of('RenderData', 'sfra'), 'i')
        end = blend.read(scene, render + blend.offset_of('RenderData', 'efra'), 'i')
        print(f'  Frame range: {start}-{end}')

        master = blend.dereference(scene, 'Scene', '*master_collection')
        if master is not None:
            dump_collections(blend, master)

        for child in scene.children:
            if blend.identify(child, 'TimeMarker'):
                name = blend.read_string(child, 'TimeMarker', 'name[64]')
                frame = blend.read_field(child, 'TimeMarker', 'frame', 'i')
                print(f'  Marker: {name} frame: {frame}')


def object_type(value):
    try:
        return BlendObjectType(value).name
    except ValueError:
        return str(value)


def dump_armatures(blend):
    for armature in blend.blocks_by_code(BlendBlockCode.AR):
        print(f'Armature: {blend.id_name(armature)}')

        bones = [_ for _ in armature.children if blend.identify(_, 'Bone')]
        for bone in bones:
            parents = [blend.read_string(_, 'Bone', 'name[64]') for _ in blend.navigator.parents(bone, 'Bone')]
            print(f'''  Bone: {blend.read_string(bone, 'Bone', 'name[64]')} parents: {' > '.join(parents) or 'null'}''')
        print(f'  Number of bones: {len(bones)}')

        for ob in blend.navigator.find_referrers(BlendBlockCode.OB, 'Object', '*data', armature.old_address):
            kind = blend.read_field(ob, 'Object', 'type', 'h')
            print(f'  Object: {blend.id_name(ob)} type: {object_type(kind)}')

            pose = blend.dereference(ob, 'Object', '*pose')
            if pose is None:
                continue

            for channel in blend.navigator.walk_listbase(pose, 'bPose', 'chanbase', 'bPoseChannel'):
                bone = blend.dereference(channel, 'bPoseChannel', '*bone')
                matrix = blend.read_field(channel, 'bPoseChannel', 'chan_mat[4][4]', '16f')
                print(f'''    Channel: {blend.read_string(channel, 'bPoseChannel', 'name[64]')} bone: {blend.read_string(bone, 'Bone', 'name[64]') if bone else 'null'}''')
                print('      [%s]' % ', '.join('%.3f' % _ for _ in matrix))


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = sys.argv[1]

    try:
        blend = load(path)
    except BlendStructException as e:
        logger.error(f'cannot parse \'{path}\': {e}')
        sys.exit(2)

    if len(sys.argv) > 2:
        dump_structs(blend, sys.argv[2:])
        sys.exit(0)

    dump_header(blend)
    dump_blocks(blend)
    dump_scenes(blend)
    dump_armatures(blend)
