from clade import *

root = cli("greeting")


@root.command("hello --name string [--strong]", short="says hello")
def hello(command, args, flags):
    strong = "!!!" if flags.value("strong") else ""
    command.stdout(f"hello {flags.value('name') or 'mystery person'}{strong}\n")


hello.add_flag(short="n", name="name", type="string", usage="name to say hello to")
hello.add_flag(short="s", name="strong", type="boolean", usage="say hello strongly")


@root.command("goodbye --name string [--strong]", short="says goodbye")
async def goodbye(command, args, flags):
    strong = "!!!" if flags.value("strong") else ""
    command.stdout(f"goodbye {flags.value('name') or 'mystery person'}{strong}\n")


goodbye.add_flag(short="n", name="name", type="string", usage="name to say goodbye to")
goodbye.add_flag(short="s", name="strong", type="boolean", usage="say goodbye strongly")


if __name__ == '__main__':
    root.main()
