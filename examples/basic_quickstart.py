import re

from aclx import Acl


def main() -> None:
    acl = Acl()
    # broad rules first, narrower rules later: the newest matching rule decides
    acl.match(re.compile(r"^/docs/"), ["read", "list"]).then_allow("*")
    acl.match(re.compile(r"^/docs/"), ["write"]).then_allow(["editor", "admin"])
    acl.match("/docs/payroll.xlsx", ["read", "list"]).then_allow("hr")

    print(acl.is_allowed("guest", "/docs/readme.md", "read"))  # True
    print(acl.is_allowed("guest", "/docs/readme.md", "write"))  # False
    print(acl.is_allowed("guest", "/docs/payroll.xlsx", "read"))  # False
    print(acl.evaluate("hr", "/docs/payroll.xlsx", "*"))

    text = acl.to_json(indent=2)
    print(text)

    restored = Acl()
    restored.from_json(text)
    print(restored.is_allowed("hr", "/docs/payroll.xlsx", "read"))  # True


if __name__ == "__main__":
    main()
