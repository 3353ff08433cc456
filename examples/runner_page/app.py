"""HTML test runner index -- the page litpage exists to serve.

Discovers ``*.test.html`` files, then renders an index page whose
``<test-list>`` and ``<page-header>`` custom elements expand from
``templates/components/``. ``<live-reload>`` has no fragment, so it is
left in place for the browser to upgrade.

Run:
    python app.py
"""

import asyncio
from pathlib import Path

from litpage import Environment, FileSystemLoader, discover_test_files

here = Path(__file__).parent
env = Environment(loader=FileSystemLoader(here / "templates"), mode="production")

test_files = discover_test_files(here / "html")
context = {"config": {"title": "Browser Tests"}, "testFiles": test_files}

output = asyncio.run(env.load_template("index.html", context))
stats = env.get_template_cache_stats().as_dict()


def main() -> None:
    print(output)
    print(f"Cache: {stats}")


if __name__ == "__main__":
    main()
