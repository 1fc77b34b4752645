#!/usr/bin/env python3
"""
Trace Inspector - command line entry point
"""

import json
import sys
from trace_inspector import InspectorConfig, TraceInspector, QUERY_LOG, SPAN_LOG
from trace_inspector.web import prepare_results, prepare_timeline_results, prepare_topology_results


def select_view(result, view):
    if view == 'timeline':
        return prepare_timeline_results(result['timeline'])
    if view == 'topology':
        return prepare_topology_results(result['topology'])
    return prepare_results(result)


def main():
    import argparse
    parser = argparse.ArgumentParser(
        description='Rebuild execution timelines and service topologies from exported query-log or span-log rows.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python inspect_rows.py spans.json
  python inspect_rows.py spans.ndjson --view topology --group-by trace_id
  python inspect_rows.py query_log.json --flavor query_log -o timeline.json
        """
    )
    parser.add_argument('input_file', help='Path to the exported rows (JSON, JSON array or NDJSON)')
    parser.add_argument('-o', '--output', dest='output_file', default=None, help='Output JSON file (default: stdout)')
    parser.add_argument('--flavor', choices=[SPAN_LOG, QUERY_LOG], default=SPAN_LOG,
                        help='Shape of the rows')
    parser.add_argument('--view', choices=['timeline', 'topology', 'all'], default='all',
                        help='Which view to write')
    parser.add_argument('--group-by', dest='group_by', default=None,
                        help='Split rows into groups by this field (e.g. trace_id)')
    parser.add_argument('--service-name', dest='service_name', default='ClickHouse',
                        help='Service name of the database cluster')
    parser.add_argument('--sample-cap', dest='sample_cap', type=int, default=200,
                        help='Maximum raw rows kept per topology edge')
    args = parser.parse_args()

    inspector = TraceInspector(InspectorConfig(
        service_name=args.service_name,
        sample_row_cap=args.sample_cap
    ))

    try:
        print(f"\nConfiguration:", file=sys.stderr)
        print(f"  Input file: {args.input_file}", file=sys.stderr)
        print(f"  Flavor: {args.flavor}", file=sys.stderr)
        print(f"  View: {args.view}", file=sys.stderr)
        print(f"  Group by: {args.group_by or '-'}\n", file=sys.stderr)
        results = inspector.inspect_file(args.input_file, args.flavor, args.group_by)
        output = {key: select_view(result, args.view) for key, result in results.items()}
        if not args.group_by:
            output = output['']

        if args.output_file:
            with open(args.output_file, 'w') as f:
                json.dump(output, f, indent=2, default=str)
            print(f"\n✓ Results written to {args.output_file}", file=sys.stderr)
        else:
            json.dump(output, sys.stdout, indent=2, default=str)
            sys.stdout.write('\n')
    except FileNotFoundError:
        print(f"Error: File '{args.input_file}' not found.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
