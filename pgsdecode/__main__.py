import os
import sys
import logging
import typing
import argparse
from pathlib import Path
from pgsdecode import PGSDecoder, Packet, format_timestamp, group_display_sets
from pgsdecode import PCSSegment, WDSSegment, PDSSegment, ODSSegment

def describe_packet(packet: Packet) -> str:
	line = f'{format_timestamp(packet.pts)} (dts {format_timestamp(packet.dts)}) {packet.kind.name}'
	match packet.body:
		case PCSSegment() as pcs:
			objects = ', '.join(
				f'obj {o.object_id} in window {o.window_id} @ {o.x},{o.y}' + (f' crop {o.crop.x},{o.crop.y} {o.crop.width}x{o.crop.height}' if o.crop else '')
				for o in pcs.objects
			)
			line += f' #{pcs.number} {pcs.width}x{pcs.height} {pcs.state.name} palette {pcs.palette_id}'
			if pcs.is_palette_update:
				line += ' (palette update)'
			if objects:
				line += f' [{objects}]'
		case WDSSegment() as wds:
			windows = ', '.join(f'{w.id}: {w.width}x{w.height} @ {w.x},{w.y}' for w in wds.windows)
			line += f' [{windows}]'
		case PDSSegment() as pds:
			line += f' id {pds.id} v{pds.version} {len(pds.entries)} entries'
		case ODSSegment() as ods:
			data_len = len(ods.data) if ods.data is not None else 0
			line += f' id {ods.id} v{ods.version} {ods.position_flag.name} {ods.width}x{ods.height} {data_len} bytes'
	return line

def dump_packets(input_file_path: str, limit: int | None = None, display_sets: bool = False, out=sys.stdout):
	with open(input_file_path, 'rb') as f:
		data = f.read()

	decoder = PGSDecoder(data)
	packets: typing.Iterable[Packet] = decoder
	# stop pulling once the limit is hit instead of decoding the rest of the file
	if limit is not None:
		packets = (packet for _, packet in zip(range(limit), decoder))

	if display_sets:
		for i, ds in enumerate(group_display_sets(packets)):
			print(f'display set {i}:', file=out)
			for packet in ds:
				print(f'\t{describe_packet(packet)}', file=out)
	else:
		for packet in packets:
			print(describe_packet(packet), file=out)

if __name__ == '__main__':
	parser = argparse.ArgumentParser(
		prog='pgsdecode',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		description= os.linesep.join((
			"prints every segment of a PGS (.sup) subtitle stream.",
			"timestamps are printed as {mm}:{ss}.{fff}",
			"",
			"usage Examples:",
			"",
			"\tprint every packet:",
			"\tinput.sup",
			"",
			"\tprint the first 20 packets grouped by display set:",
			"\tinput.sup --limit 20 --display-sets",
		))
	)

	parser.add_argument('input_file', help='The input .sup file to use.')
	parser.add_argument('--limit', default=None, type=int, help='Stop after this many packets.')
	parser.add_argument('--display-sets', action='store_true', help='Group packets by display set.')
	parser.add_argument('-v', '--verbose', action='store_true', help='Log every segment header that gets decoded.')
	args = vars(parser.parse_args())

	logging.basicConfig(level=logging.DEBUG if args['verbose'] else logging.WARNING)

	# check if input file exists
	input_file = args['input_file']
	if not Path(input_file).is_file():
		raise IOError(f'file not found: {input_file}')

	dump_packets(input_file, limit=args['limit'], display_sets=args['display_sets'])
