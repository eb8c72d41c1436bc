"""
# blendstruct: .blend files without compiled-in structs

A .blend file carries the description of its own structs: the names of the
fields, their types and the length of every type. Reading it means reading
two different kinds of layout:

 1. the fixed ones (the file header, the block headers and the sections of the
    struct catalog) described declaratively with Record subclasses made of Fields
    and unpacked from a Stream

 2. the dynamic ones (the content of the blocks) described only by the catalog
    found in the file, where a field is located by its name and read at the
    offset computed summing the sizes of the fields preceding it

On top of that the pointers saved in the file are resolved to the blocks they
pointed to, so that lists and trees can be walked.

A Record (and a Field) can be in one of the following phases

 1. INIT: the fields have their default values
 2. UNPACKING: the fields are being read from the stream
 3. DONE: the fields have been unpacked

and the unpacking stops at the first FormatException, whose chain tells the
path of the field that failed.

"""
