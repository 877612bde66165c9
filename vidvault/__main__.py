from vidvault.main import run

run()
