from wheelie.cli import main

main()
