from settleup.bot import run

run()
