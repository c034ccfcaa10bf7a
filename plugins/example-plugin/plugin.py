"""Example plugin: answers ``example.echo`` and ignores everything else."""

_context = None


def initialize(context):
    global _context
    _context = context
    context.logger.info("Example plugin initialized")


async def handle_message(envelope, dispatch_context):
    if envelope.type != "example.echo":
        return False

    _context.logger.info("Example plugin handling message from %s", dispatch_context.connection_id)
    await dispatch_context.reply(
        "example.echo.response",
        {
            "echo": envelope.data,
            "handled_by": _context.manifest.name,
            "timestamp": dispatch_context.server.now(),
        },
    )
    return True


def on_server_shutdown():
    _context.logger.info("Example plugin shutting down")
