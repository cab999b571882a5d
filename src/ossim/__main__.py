from ossim.app import main

main()
