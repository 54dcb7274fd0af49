"""
Benchmarks for the line search server.

Run from the project root:
    python benchmarks/benchmark.py
"""

import os
import random
import shutil
import subprocess
import sys
import tempfile
import time

from linesearch_client import LineSearchClient

WORDS = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf",
         "hotel", "india", "juliet", "kilo", "lima", "mike", "november"]


def write_corpus(path, num_lines, words_per_line=12, seed=42):
    """Write a random corpus of num_lines lines."""
    rng = random.Random(seed)
    with open(path, "w", encoding="utf-8") as f:
        for i in range(num_lines):
            words = [rng.choice(WORDS) for _ in range(words_per_line)]
            f.write(f"{' '.join(words)} line{i}.\n")


def start_server(port, db_path):
    """Start a server."""
    proc = subprocess.Popen(
        [sys.executable, "-m", "linesearch.run_server",
         "--addresses", f"127.0.0.1:{port}", "--db", db_path],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE
    )
    time.sleep(1)
    return proc


def stop_server(proc):
    """Stop server gracefully."""
    proc.terminate()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()


def wait_ready(client):
    for _ in range(20):
        if client.health():
            return True
        time.sleep(0.3)
    return False


def benchmark_search_throughput(work_dir):
    """
    Benchmark: Search throughput (queries/second).
    Tests with different corpus sizes.
    """
    print("\n" + "="*60)
    print("BENCHMARK: Search Throughput")
    print("="*60)

    port = 5110
    corpus_sizes = [1000, 10000, 100000]

    for size in corpus_sizes:
        db_path = os.path.join(work_dir, f"corpus_{size}.txt")
        write_corpus(db_path, size)

        proc = start_server(port, db_path)
        client = LineSearchClient(host="127.0.0.1", port=port)
        wait_ready(client)

        queries = ["alpha", "alpha bravo", "alpha bravo charlie delta", "zulu"]
        num_queries = 200
        start = time.time()

        for i in range(num_queries):
            client.search(queries[i % len(queries)])

        elapsed = time.time() - start
        throughput = num_queries / elapsed

        print(f"Corpus: {size:6d} lines | "
              f"Queries: {num_queries} | "
              f"Time: {elapsed:.3f}s | "
              f"Throughput: {throughput:.1f} queries/sec")

        client.close()
        stop_server(proc)


def benchmark_fetch_throughput(work_dir):
    """
    Benchmark: Fetch throughput.
    """
    print("\n" + "="*60)
    print("BENCHMARK: Fetch Throughput")
    print("="*60)

    port = 5111
    num_lines = 10000
    db_path = os.path.join(work_dir, "corpus_fetch.txt")
    write_corpus(db_path, num_lines)

    proc = start_server(port, db_path)
    client = LineSearchClient(host="127.0.0.1", port=port)
    wait_ready(client)

    num_fetches = 500
    start = time.time()

    for i in range(num_fetches):
        client.fetch((i * 7919) % num_lines)

    elapsed = time.time() - start
    throughput = num_fetches / elapsed

    print(f"Fetches: {num_fetches} | Time: {elapsed:.3f}s | Throughput: {throughput:.1f} fetches/sec")

    client.close()
    stop_server(proc)


def run_all_benchmarks():
    """Run all benchmarks."""
    print("\n" + "#"*60)
    print("# LINE SEARCH BENCHMARKS")
    print("#"*60)

    work_dir = tempfile.mkdtemp(prefix="linesearch_bench_")
    try:
        benchmark_search_throughput(work_dir)
        benchmark_fetch_throughput(work_dir)
    finally:
        shutil.rmtree(work_dir)

    print("\n" + "#"*60)
    print("# BENCHMARKS COMPLETE")
    print("#"*60)


if __name__ == "__main__":
    run_all_benchmarks()
