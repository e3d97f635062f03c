import argparse
import contextlib
import struct
import sys
import urllib.request
import macresources

from .binhex4 import BinHex4Reader, CHUNK
from .errors import BinHexError, FormatError


def open_input(args):
    if args.url:
        return urllib.request.urlopen(args.url)
    if args.file and args.file != '-':
        return open(args.file, 'rb')
    return contextlib.nullcontext(sys.stdin.buffer)


def host_name(header):
    # Mac file names can contain a slash or a NUL but not a colon
    name = header.name_str().replace('/', ':').replace('\0', ':')
    if name in ('', '.', '..'):
        name = 'untitled'
    return name


def pump(reader, f):
    total = 0
    while True:
        chunk = reader.read(CHUNK)
        if not chunk:
            return total
        f.write(chunk)
        total += len(chunk)


def parse_resources(rsrc):
    if not rsrc:
        return []
    try:
        return list(macresources.parse_file(rsrc))
    except (struct.error, ValueError, IndexError, KeyError) as e:
        raise FormatError('resource fork is not a resource file: %s' % e) from e


def list_resources(rsrc):
    for r in parse_resources(rsrc):
        line = "'%s' %6d %8d" % (r.type.decode('mac_roman'), r.id, len(r.data))
        if r.name is not None:
            line += ' %s' % r.name
        yield line


def run(f, args):
    reader = BinHex4Reader(f, eight_bit=args.eight_bit)
    header = reader.get_header()

    if args.info:
        print(header)
        return

    if args.list:
        reader.use_resource_fork()
        rsrc = reader.read_all()
        for line in list_resources(rsrc):
            print(line)
        return

    want_data = args.data or args.data_output is not None
    want_rsrc = args.rsrc or args.rsrc_output is not None or args.rdump
    if not want_data and not want_rsrc:
        want_data = True

    name = host_name(header)

    if want_data:
        dest = args.data_output or name
        with open(dest, 'wb') as out:
            n = pump(reader, out)
        if args.verbose:
            print('data fork: %d bytes -> %s' % (n, dest), file=sys.stderr)

    if want_rsrc:
        reader.use_resource_fork()

        if args.rdump:
            dest = args.rsrc_output or name + '.rdump'
            rsrc = reader.read_all()
            resources = parse_resources(rsrc)
            with open(dest, 'wb') as out:
                out.write(macresources.make_rez_code(resources, ascii_clean=True))
            n = len(rsrc)

        else:
            dest = args.rsrc_output or name + '.resource'
            with open(dest, 'wb') as out:
                n = pump(reader, out)

        if args.verbose:
            print('resource fork: %d bytes -> %s' % (n, dest), file=sys.stderr)

    if args.idump:
        dest = (args.data_output or name) + '.idump'
        with open(dest, 'wb') as out:
            out.write(header.type + header.creator)
        if args.verbose:
            print('type/creator: %s%s -> %s' % (header.type_str(), header.creator_str(), dest), file=sys.stderr)


def main(args=None):
    if args is None: args = sys.argv[1:]

    description = '''Decode a BinHex 4.0 (.hqx) file into its data fork
    and resource fork. With no fork options, the data fork is written to
    a file named after the original Mac file.'''

    parser = argparse.ArgumentParser(prog='unhqx', description=' '.join(description.split()))
    parser.add_argument('file', nargs='?', metavar='<input-file>', help='BinHex file (default: standard input)')
    parser.add_argument('-u', dest='url', metavar='<url>', help='fetch the BinHex file from a URL instead')
    parser.add_argument('-8', '--eight-bit', action='store_true', help='input is already unpacked to 8 bits')
    parser.add_argument('-i', '--info', action='store_true', help='print the header and decode nothing')
    parser.add_argument('-l', '--list', action='store_true', help='list the resources in the resource fork')
    parser.add_argument('-d', dest='data', action='store_true', help='decode the data fork')
    parser.add_argument('-o', dest='data_output', metavar='<data-file>', help='data fork destination (implies -d)')
    parser.add_argument('-r', dest='rsrc', action='store_true', help='decode the resource fork to <name>.resource')
    parser.add_argument('-R', dest='rsrc_output', metavar='<rsrc-file>', help='resource fork destination (implies -r)')
    parser.add_argument('--rdump', action='store_true', help='write the resource fork as Rez code (<name>.rdump)')
    parser.add_argument('--idump', action='store_true', help='write the type and creator to <name>.idump')
    parser.add_argument('-v', '--verbose', action='store_true', help='report what was written')
    args = parser.parse_args(args)

    try:
        with open_input(args) as f:
            run(f, args)
    except (BinHexError, OSError) as e:
        print('unhqx: %s' % e, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
