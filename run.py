import argparse

from markgrove import create_app


def main() -> None:
    p = argparse.ArgumentParser(prog="markgrove")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8073)
    args = p.parse_args()

    app = create_app()
    print(f"MarkGrove starting on http://{args.host}:{args.port}", flush=True)
    app.run(host=args.host, port=args.port, debug=False)


if __name__ == "__main__":
    main()
