import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import argparse
import json

from mcprobe.config import QUERY_TIMEOUT, SCAN_WORKERS
from mcprobe.legacy import BETA_REQUEST, LEGACY_REQUEST, build_extended_request, kick_frame_length
from mcprobe.mc_ping import CODECS
from mcprobe.modern import build_json_request, json_frame_length
from mcprobe.bedrock import build_bedrock_request
from mcprobe.status import ProbeRequest, SlpProtocol
from mcprobe.transport import ProbeError, tcp_exchange, udp_exchange
from worker.worker import scan_batch


def raw_exchange(request, protocol):
    """Send one codec's probe and return the raw reply, for eyeballing hex dumps."""
    if protocol is SlpProtocol.BEDROCK:
        return udp_exchange(request.address, request.udp_port, request.timeout, build_bedrock_request())[0]
    probes = {
        SlpProtocol.BETA: (BETA_REQUEST, kick_frame_length),
        SlpProtocol.LEGACY: (LEGACY_REQUEST, kick_frame_length),
        SlpProtocol.EXTENDED: (build_extended_request(request.address, request.tcp_port), kick_frame_length),
        SlpProtocol.JSON: (build_json_request(request.address, request.tcp_port), json_frame_length),
    }
    probe, frame_length = probes[protocol]
    return tcp_exchange(request.address, request.tcp_port, request.timeout, probe, frame_length)[0]


def print_status(status):
    if status.online:
        print(f"✅ [{status.slp_protocol}] {status.address}:{status.port} - {status.stripped_motd} "
              f"[{status.current_players}/{status.max_players}] - {status.version} ({status.latency_ms}ms)")
    else:
        print(f"❌ [{status.slp_protocol or 'AUTO'}] {status.address}:{status.port} - {status.connection_status}")


def debug_all_codecs(request):
    print(f"\n🔎 Pinging {request.address}...")
    for protocol, query in CODECS.items():
        status = query(ProbeRequest(request.address, request.port, request.timeout, protocol))
        print_status(status)
        if not status.online:
            try:
                raw = raw_exchange(request, protocol)
                print(f"[DEBUG] Raw {protocol} response: {raw.hex()}")
            except ProbeError as e:
                print(f"[DEBUG] Raw {protocol} exchange failed: {e}")


def build_parser():
    parser = argparse.ArgumentParser(description="Query Minecraft servers and print their status.")
    parser.add_argument("targets", nargs="+", help="host, host:port or [ipv6]:port")
    parser.add_argument("--protocol", default="ALL", choices=[p.name for p in SlpProtocol],
                        help="Protocol to speak (default: auto-detect)")
    parser.add_argument("--timeout", type=float, default=QUERY_TIMEOUT, help="Per-attempt timeout in seconds")
    parser.add_argument("--workers", type=int, default=SCAN_WORKERS, help="Concurrent queries")
    parser.add_argument("--all-codecs", action="store_true", help="Run every codec separately and dump raw replies")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        requests = [ProbeRequest.from_target(t, timeout=args.timeout, protocol=args.protocol) for t in args.targets]
    except ValueError as e:
        print(f"💥 {e}", file=sys.stderr)
        return 2

    if args.all_codecs:
        for request in requests:
            debug_all_codecs(request)
        return 0

    results = scan_batch(requests, workers=args.workers, progress=len(requests) > 1 and not args.json)
    if args.json:
        print(json.dumps([status.as_dict() for status in results], indent=2, ensure_ascii=False))
    else:
        for status in results:
            print_status(status)
    return 0 if all(status.online for status in results) else 1


if __name__ == "__main__":
    sys.exit(main())
