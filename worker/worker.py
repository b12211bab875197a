import socket
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from mcprobe.config import QUERY_TIMEOUT, SCAN_WORKERS
from mcprobe.logger import get_logger
from mcprobe.mc_ping import ping_server # Unified Minecraft ping
from mcprobe.status import ConnStatus, ProbeRequest, ServerStatus, SlpProtocol

logger = get_logger("worker")


def _as_request(target, timeout, protocol):
    if isinstance(target, ProbeRequest):
        return target
    return ProbeRequest.from_target(target, timeout=timeout, protocol=protocol)


def scan_batch(targets, timeout=QUERY_TIMEOUT, protocol=SlpProtocol.ALL, workers=SCAN_WORKERS,
               cancel=None, progress=True):
    """Query every target concurrently and return their statuses in input order.

    ``targets`` holds ProbeRequest objects or "host[:port]" strings. Each query
    is independent; ``cancel`` (a threading.Event) stops queries that have not
    started their next codec attempt yet.
    """
    hostname = socket.gethostname()
    requests = [_as_request(t, timeout, protocol) for t in targets] # Bad targets fail here, before any I/O
    if not requests:
        return []

    logger.info(f"[{hostname}] Scanning {len(requests)} targets...")
    results = [None] * len(requests)
    total_found_in_batch = 0

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(requests)))) as pool:
        futures = {pool.submit(ping_server, req, cancel): index for index, req in enumerate(requests)}
        for future in tqdm(as_completed(futures), total=len(futures), desc="Probing", disable=not progress):
            index = futures[future]
            req = requests[index]
            try:
                status = future.result()
            except Exception as ping_exc:
                logger.warning(f"[{hostname}] Ping error for {req.address}: {ping_exc}")
                status = ServerStatus.failed(req.address, req.tcp_port, ConnStatus.UNKNOWN) # Treat ping error same as no response
            results[index] = status
            if status.online:
                total_found_in_batch += 1
                logger.info(f"[{hostname}] [+] Found: {status.address}:{status.port} - {status.stripped_motd} "
                            f"[{status.current_players}/{status.max_players}] - {status.version} ({status.slp_protocol})")
            else:
                logger.debug(f"[{hostname}] [-] No MC ping from {status.address} ({status.connection_status})")

    logger.info(f"[{hostname}] Finished batch. Found responsive: {total_found_in_batch}, Scanned: {len(requests)}.")
    return results
