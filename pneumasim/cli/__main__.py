from pneumasim.cli.main import main

main()
