import argparse
import re
import statistics
import time

from aclx import Acl


def gen_acl(n: int) -> Acl:
    acl = Acl()
    acl.match(re.compile(".*"), ["GET", "POST"]).then_allow("admin")
    for i in range(n - 1):
        acl.match(f"/docs/{i}", "GET").then_allow(["reader", "admin"])
    return acl


def run(size: int, iters: int):
    acl = gen_acl(size)
    # worst case: only the oldest rule matches
    resource = "/unlisted"
    lat = []
    for _ in range(iters):
        t0 = time.perf_counter()
        allowed = acl.is_allowed("admin", resource, "GET")
        lat.append((time.perf_counter() - t0) * 1000.0)
    return {
        "p50": statistics.median(lat),
        "avg": sum(lat) / len(lat),
        "p90": percentile(lat, 90),
        "allowed": allowed,
    }


def percentile(arr, p):
    arr2 = sorted(arr)
    k = int(round((p / 100.0) * (len(arr2) - 1)))
    return arr2[k]


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--sizes", type=int, nargs="+", default=[10, 50, 100, 500, 1000])
    ap.add_argument("--iters", type=int, default=200)
    args = ap.parse_args()
    print("size,avg_ms,p50_ms,p90_ms,allowed")
    for s in args.sizes:
        r = run(s, args.iters)
        print(f"{s},{r['avg']:.3f},{r['p50']:.3f},{r['p90']:.3f},{r['allowed']}")


if __name__ == "__main__":
    main()
