#!/usr/bin/env python3

import argparse
import sys
import yaml
from clipmixlib.core.errors import ClipmixError
from clipmixlib.core.project import ClipmixProject
from clipmixlib.exporters.edit_info import EditInfoExporter

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="Timeline audio mixer and video compositor")
	parser.add_argument('-y', '--yaml', dest='yamlfile', required=True,
		help='project yaml file with the tracks and clips to combine')
	parser.add_argument('-o', '--output', dest='output_file',
		help='override output video file from yaml')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='validate only, do not mix or render')
	parser.add_argument('-a', '--audio-only', dest='audio_only', action='store_true',
		help='write the mixed wav and skip the video render')
	parser.add_argument('-c', '--cache-dir', dest='cache_dir',
		help='directory for temporary render files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep temporary render files', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove temporary render files', action='store_false')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the segment plan and filter graph')
	parser.add_argument('-e', '--export-info', dest='export_info',
		help='write edit info (yaml, or json by extension) to this file')
	parser.set_defaults(keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

def main():
	args = parse_args()
	try:
		project = ClipmixProject(args.yamlfile, output_override=args.output_file,
			dry_run=args.dry_run, keep_temp=args.keep_temp, cache_dir=args.cache_dir)
		if args.export_info:
			EditInfoExporter(project, args.export_info).export()
		if args.dump_plan:
			print(yaml.safe_dump(project.dump_plan(), sort_keys=False))
			project.cleanup()
			return
		project.run(audio_only=args.audio_only)
	except ClipmixError as exc:
		print(f"ERROR: {exc}", file=sys.stderr)
		sys.exit(1)


if __name__ == '__main__':
	main()
