from __future__ import annotations


def greet(who, options):
    greeting = f"Hello, {who}!"
    for _ in range(options.get("times") or 1):
        print(greeting.upper() if options.get("loud") else greeting)
