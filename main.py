from rich.pretty import pprint

from cmdtree import *

app = root(synopsis="example of a command tree")
flag0 = app.string("flag0", "", "root string flag")

sub1 = app.command("sub1", "first sub command")
flag1 = sub1.string("flag1", "", "sub1 string flag")
flag2 = sub1.integer("flag2", 0, "sub1 int flag")

sub2 = app.command("sub2", "second sub command")
files = sub2.arguments("[file...]", "files to inspect", predictor(Files("*.py")))

tree = app.command("tree", "show the command tree")


if __name__ == '__main__':
    app.parse()
    if sub1.parsed:
        print("Called sub1 with flags: %s, %d" % (flag1.value, flag2.value))
    elif sub2.parsed:
        print("Called sub2 with files: %s" % ", ".join(files))
    elif tree.parsed:
        pprint(app)
