#!/usr/bin/env python3
# scripts/run_roundtrip_bench.py
# Unpack and re-pack every workflow JSON under a directory and report
# whether nodes and connections survive the round trip.

import os, json, glob, csv, argparse, tempfile

from flowpack.errors import FlowpackError
from flowpack.model.document import Document
from flowpack.pack.packer import pack_project
from flowpack.unpack.unpacker import unpack_workflow
from flowpack.utils.graph import flow_keys


def node_set(nodes):
    return sorted(json.dumps(n, sort_keys=True) for n in nodes)


def roundtrip(path):
    """Returns (nodes_ok, flows_ok, detail)."""
    with open(path, "r", encoding="utf-8") as f:
        original = json.load(f)

    with tempfile.TemporaryDirectory() as tmp:
        unpack_workflow(path, tmp)
        result = pack_project(tmp)
        with open(result.output_path, "r", encoding="utf-8") as f:
            packed = json.load(f)

    nodes_ok = node_set(packed.get("nodes", [])) == node_set(original.get("nodes", []))
    before = flow_keys(Document.from_dict(original).flows())
    after = flow_keys(Document.from_dict(packed).flows())
    detail = ""
    if before != after:
        detail = f"missing={len(before - after)} extra={len(after - before)}"
    return nodes_ok, before == after, detail


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--docs", default="bench/roundtrip", help="directory containing workflow *.json files")
    ap.add_argument("--out", default="experiments/results/roundtrip_bench.csv")
    args = ap.parse_args()

    docs = sorted(glob.glob(os.path.join(args.docs, "**", "*.json"), recursive=True))
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)

    passed = 0
    with open(args.out, "w", newline="", encoding="utf-8") as fo:
        w = csv.writer(fo)
        w.writerow(["document", "nodes_ok", "flows_ok", "pass", "detail"])
        for d in docs:
            try:
                nodes_ok, flows_ok, detail = roundtrip(d)
            except FlowpackError as e:
                nodes_ok, flows_ok, detail = False, False, str(e)
            ok = nodes_ok and flows_ok
            passed += ok
            w.writerow([os.path.relpath(d, args.docs), nodes_ok, flows_ok, ok, detail])

    print(f"Wrote {args.out}: {passed}/{len(docs)} documents round-trip cleanly.")


if __name__ == "__main__":
    main()
