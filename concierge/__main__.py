from concierge.cli.chat import main

main()
